"""
Tests for extraction graph parsing, validation and serialization.
"""

import pytest
import yaml

from content_pipeline import (
    INGESTION_SOURCE,
    CyclicGraphError,
    DanglingSourceReferenceError,
    DuplicatePolicyNameError,
    ExtractionGraph,
    ExtractionPolicy,
    GraphBuilder,
    MalformedSpecError,
)
from content_pipeline.graph import topological_order

KB_SPEC = """
name: 'kb'
extraction_policies:
  - extractor: 'chunker'
    name: 'c1'
    input_params:
      chunk_size: 512
      overlap: 0.1
  - extractor: 'embedder'
    name: 'c2'
    content_source: 'c1'
    filters_eq: 'lang:en'
"""


def kb_graph() -> ExtractionGraph:
    return ExtractionGraph(name="kb", extraction_policies=[
        ExtractionPolicy(extractor="chunker", name="c1"),
        ExtractionPolicy(extractor="embedder", name="c2", content_source="c1"),
    ])


class TestFromSpec:
    """Parsing YAML specifications."""

    def test_parses_policies_in_order(self):
        graph = GraphBuilder.from_spec(KB_SPEC)

        assert graph.name == "kb"
        assert graph.policy_names == ["c1", "c2"]
        assert graph.get_policy("c1").input_params == {"chunk_size": 512, "overlap": 0.1}
        assert graph.get_policy("c2").content_source == "c1"
        assert graph.get_policy("c2").label_filter == {"lang": "en"}

    def test_accepts_json(self):
        graph = GraphBuilder.from_spec('{"name": "kb", "extraction_policies": [{"extractor": "x", "name": "p"}]}')
        assert graph.policy_names == ["p"]

    def test_accepts_label_filter_mapping_and_legacy_key(self):
        graph = GraphBuilder.from_spec("""
name: g
extraction_policies:
  - {extractor: x, name: p, labels_eq: {lang: en, kind: pdf}}
""")
        assert graph.get_policy("p").label_filter == {"lang": "en", "kind": "pdf"}

    @pytest.mark.parametrize("text", [
        "name: [unclosed",
        "- just\n- a list",
        "extraction_policies: []",
        "name: g\nextraction_policies: {extractor: x}",
        "name: g\nextraction_policies:\n  - name: p",
        "name: g\nextraction_policies:\n  - extractor: x",
        "name: g\nextraction_policies:\n  - extractor: x\n    name: p\n    input_params: {nested: {a: 1}}",
        "name: g\nextraction_policies:\n  - extractor: x\n    name: p\n    filters_eq: 'no-separator'",
    ])
    def test_malformed_specs(self, text):
        with pytest.raises(MalformedSpecError):
            GraphBuilder.from_spec(text)

    def test_cycle_in_spec(self):
        text = """
name: g
extraction_policies:
  - {extractor: x, name: a, content_source: b}
  - {extractor: y, name: b, content_source: a}
"""
        with pytest.raises(CyclicGraphError) as excinfo:
            GraphBuilder.from_spec(text)
        assert set(excinfo.value.cycle) == {"a", "b"}
        assert excinfo.value.cycle[0] == excinfo.value.cycle[-1]


class TestValidate:
    """Name uniqueness, edge resolution and acyclicity."""

    def test_valid_graph(self):
        GraphBuilder.validate(kb_graph())

    def test_removing_source_policy_leaves_dangling_reference(self):
        graph = kb_graph()
        broken = ExtractionGraph(name="kb", extraction_policies=[graph.get_policy("c2")])

        with pytest.raises(DanglingSourceReferenceError) as excinfo:
            GraphBuilder.validate(broken)
        assert excinfo.value.content_source == "c1"

    def test_duplicate_names(self):
        graph = ExtractionGraph(name="kb", extraction_policies=[
            ExtractionPolicy(extractor="a", name="p"),
            ExtractionPolicy(extractor="b", name="p"),
        ])
        with pytest.raises(DuplicatePolicyNameError):
            GraphBuilder.validate(graph)

    def test_ingestion_sentinel_is_a_valid_source(self):
        graph = ExtractionGraph(name="kb", extraction_policies=[
            ExtractionPolicy(extractor="a", name="p", content_source=INGESTION_SOURCE),
        ])
        GraphBuilder.validate(graph)

    @pytest.mark.parametrize("sources", [
        {"a": "a"},
        {"a": "b", "b": "a"},
        {"a": "c", "b": "a", "c": "b"},
        {"root": None, "a": "root", "b": "c", "c": "d", "d": "b"},
    ])
    def test_cycles_always_fail(self, sources):
        graph = ExtractionGraph(name="g", extraction_policies=[
            ExtractionPolicy(extractor="x", name=name, content_source=source)
            for name, source in sources.items()
        ])
        with pytest.raises(CyclicGraphError):
            GraphBuilder.validate(graph)

    def test_builder_validates_on_build(self):
        builder = GraphBuilder("kb").add_policy("c2", "embedder", content_source="c1")
        with pytest.raises(DanglingSourceReferenceError):
            builder.build()

        graph = GraphBuilder("kb").add_policy("c1", "chunker").add_policy("c2", "embedder", content_source="c1").build()
        assert graph.edges() == [(INGESTION_SOURCE, "c1"), ("c1", "c2")]

    def test_ingestion_is_a_reserved_policy_name(self):
        graph = ExtractionGraph(name="kb", extraction_policies=[
            ExtractionPolicy(extractor="x", name=INGESTION_SOURCE),
            ExtractionPolicy(extractor="y", name="c1", content_source=INGESTION_SOURCE),
        ])
        with pytest.raises(MalformedSpecError):
            GraphBuilder.validate(graph)
        with pytest.raises(MalformedSpecError):
            GraphBuilder("g").add_policy(INGESTION_SOURCE, "x").build()

    @pytest.mark.parametrize("label_filter", [
        {"url": "http://x"},
        {"topic": "a,b"},
        {"a,b": "topic"},
        {"": "v"},
    ])
    def test_label_filters_must_be_encodable(self, label_filter):
        graph = ExtractionGraph(name="kb", extraction_policies=[
            ExtractionPolicy(extractor="x", name="c1", label_filter=label_filter),
        ])
        with pytest.raises(MalformedSpecError):
            GraphBuilder.validate(graph)

    def test_comma_in_label_value_is_rejected_when_parsing(self):
        with pytest.raises(MalformedSpecError):
            GraphBuilder.from_spec("""
name: kb
extraction_policies:
  - {extractor: x, name: c1, filters_eq: {topic: 'a,b'}}
""")


class TestWireFormat:
    """Serialization for registration."""

    def test_omits_absent_optional_fields(self):
        wire = GraphBuilder.to_wire_format(kb_graph())

        assert wire == {
            "name": "kb",
            "extraction_policies": [
                {"extractor": "chunker", "name": "c1"},
                {"extractor": "embedder", "name": "c2", "content_source": "c1"},
            ],
        }

    def test_includes_params_and_filters(self):
        wire = GraphBuilder.to_wire_format(GraphBuilder.from_spec(KB_SPEC))
        policies = wire["extraction_policies"]

        assert policies[0]["input_params"] == {"chunk_size": 512, "overlap": 0.1}
        assert policies[1]["filters_eq"] == "lang:en"
        assert "id" not in wire and "namespace" not in wire

    @pytest.mark.parametrize("spec", [
        KB_SPEC,
        "name: single\nextraction_policies:\n  - {extractor: x, name: only}",
        "name: fan\nextraction_policies:\n"
        "  - {extractor: x, name: a}\n"
        "  - {extractor: y, name: b, content_source: a}\n"
        "  - {extractor: z, name: c, content_source: a}\n"
        "  - {extractor: w, name: d, content_source: ingestion}",
        "name: labelled\nextraction_policies:\n"
        "  - {extractor: x, name: a, filters_eq: {lang: en, kind: 'pdf doc'}}\n"
        "  - {extractor: y, name: b, content_source: a, filters_eq: 'topic:a-b'}",
    ])
    def test_round_trip_keeps_names_and_edges(self, spec):
        graph = GraphBuilder.from_spec(spec)
        reparsed = GraphBuilder.from_spec(yaml.safe_dump(GraphBuilder.to_wire_format(graph)))

        assert reparsed.policy_names == graph.policy_names
        assert reparsed.edges() == graph.edges()
        assert [p.label_filter for p in reparsed.extraction_policies] == \
            [p.label_filter for p in graph.extraction_policies]
        assert GraphBuilder.from_spec(GraphBuilder.to_yaml(graph)) == reparsed


def test_topological_order_puts_sources_first():
    graph = GraphBuilder("g") \
        .add_policy("embed", "e", content_source="chunk") \
        .add_policy("chunk", "c") \
        .add_policy("summary", "s", content_source="chunk") \
        .build()

    order = [policy.name for policy in topological_order(graph)]
    assert order.index("chunk") < order.index("embed")
    assert order.index("chunk") < order.index("summary")
    assert len(order) == 3


def test_topological_order_rejects_reserved_name():
    graph = ExtractionGraph(name="g", extraction_policies=[
        ExtractionPolicy(extractor="x", name=INGESTION_SOURCE),
    ])
    with pytest.raises(MalformedSpecError):
        topological_order(graph)
