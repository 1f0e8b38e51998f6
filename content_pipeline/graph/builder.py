"""
Extraction graph construction, validation and serialization.

Graphs can be parsed from a YAML (or JSON) specification, built from a
mapping, or assembled with the fluent GraphBuilder. All of it is side-effect
free so that an invalid graph never reaches the network layer.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import ValidationError

from ..errors import (
    CyclicGraphError,
    DanglingSourceReferenceError,
    DuplicatePolicyNameError,
    InvalidLabelFilterError,
    MalformedSpecError,
)
from ..query.filters import encode_label_filter_expression, parse_label_filter_expression
from .data_models import INGESTION_SOURCE, ExtractionGraph, ExtractionPolicy, Scalar

logger = logging.getLogger(__name__)


def _optional_str(value: Any) -> Optional[str]:
    # server-assigned ids may arrive as numbers
    return None if value is None else str(value)


class GraphBuilder:
    """Builds and validates extraction graphs."""

    def __init__(self, name: str, namespace: Optional[str] = None):
        self.name = name
        self.namespace = namespace
        self._policies: List[ExtractionPolicy] = []

    def add_policy(self,
                   name: str,
                   extractor: str,
                   content_source: Optional[str] = None,
                   input_params: Optional[Dict[str, Scalar]] = None,
                   label_filter: Optional[Dict[str, str]] = None) -> "GraphBuilder":
        self._policies.append(ExtractionPolicy(
            name=name,
            extractor=extractor,
            content_source=content_source,
            input_params=input_params,
            label_filter=label_filter,
        ))
        return self

    def build(self) -> ExtractionGraph:
        """Assemble the graph and validate it."""
        graph = ExtractionGraph(name=self.name, namespace=self.namespace, extraction_policies=list(self._policies))
        GraphBuilder.validate(graph)
        return graph

    @staticmethod
    def from_spec(text: str) -> ExtractionGraph:
        """
        Parse a YAML graph specification.

        Args:
            text: YAML (or JSON) document with ``name`` and ``extraction_policies``

        Returns:
            A validated ExtractionGraph

        Raises:
            MalformedSpecError: If the text is not a valid specification
            CyclicGraphError: If content_source edges form a cycle
        """
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise MalformedSpecError(f"Graph specification is not valid YAML: {e}") from e

        if not isinstance(data, Mapping):
            raise MalformedSpecError("Graph specification must be a mapping")

        return GraphBuilder.from_dict(data)

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> ExtractionGraph:
        """Build and validate a graph from a mapping shaped like the wire format."""
        name = data.get("name")
        if not name or not isinstance(name, str):
            raise MalformedSpecError("Graph specification is missing 'name'")

        raw_policies = data.get("extraction_policies") or []
        if not isinstance(raw_policies, list):
            raise MalformedSpecError(f"'extraction_policies' of graph '{name}' must be a list")

        policies = [GraphBuilder._parse_policy(name, index, raw) for index, raw in enumerate(raw_policies)]

        try:
            graph = ExtractionGraph(
                name=name,
                extraction_policies=policies,
                id=_optional_str(data.get("id")),
                namespace=data.get("namespace"),
            )
        except ValidationError as e:
            raise MalformedSpecError(f"Graph '{name}' is malformed: {e}") from e

        GraphBuilder.validate(graph)
        logger.debug(f"Parsed extraction graph '{name}' with {len(policies)} policies")
        return graph

    @staticmethod
    def _parse_policy(graph_name: str, index: int, raw: Any) -> ExtractionPolicy:
        if not isinstance(raw, Mapping):
            raise MalformedSpecError(f"Policy #{index} of graph '{graph_name}' must be a mapping")

        for field in ("name", "extractor"):
            if not raw.get(field):
                raise MalformedSpecError(f"Policy #{index} of graph '{graph_name}' is missing '{field}'")

        input_params = raw.get("input_params")
        if input_params is not None:
            if not isinstance(input_params, Mapping):
                raise MalformedSpecError(f"'input_params' of policy '{raw['name']}' must be a mapping")
            for key, value in input_params.items():
                if not isinstance(value, (bool, int, float, str)):
                    raise MalformedSpecError(
                        f"Input param '{key}' of policy '{raw['name']}' must be a scalar, got {type(value).__name__}"
                    )

        label_filter = raw.get("filters_eq", raw.get("labels_eq"))
        try:
            if isinstance(label_filter, str):
                label_filter = parse_label_filter_expression(label_filter)
        except InvalidLabelFilterError as e:
            raise MalformedSpecError(f"Label filter of policy '{raw['name']}' is malformed: {e}") from e
        if label_filter is not None and not isinstance(label_filter, Mapping):
            raise MalformedSpecError(f"Label filter of policy '{raw['name']}' must be a mapping or string")

        try:
            return ExtractionPolicy(
                name=str(raw["name"]),
                extractor=str(raw["extractor"]),
                id=_optional_str(raw.get("id")),
                input_params=dict(input_params) if input_params is not None else None,
                content_source=raw.get("content_source") or None,
                label_filter={str(k): str(v) for k, v in label_filter.items()} if label_filter else None,
            )
        except ValidationError as e:
            raise MalformedSpecError(f"Policy '{raw['name']}' of graph '{graph_name}' is malformed: {e}") from e

    @staticmethod
    def validate(graph: ExtractionGraph) -> None:
        """
        Check name uniqueness, edge resolution and acyclicity.

        A graph that passes can always be serialized with to_wire_format and
        parsed back into the same policies and edges.

        Raises:
            MalformedSpecError: If a policy uses the reserved ingestion name or
                has a label filter that cannot be encoded
            DuplicatePolicyNameError: If two policies share a name
            DanglingSourceReferenceError: If a content_source names no policy
            CyclicGraphError: If content_source edges form a cycle
        """
        seen = set()
        for policy in graph.extraction_policies:
            if policy.name == INGESTION_SOURCE:
                raise MalformedSpecError(
                    f"Policy name '{INGESTION_SOURCE}' in graph '{graph.name}' is reserved for ingested content"
                )
            if policy.name in seen:
                raise DuplicatePolicyNameError(graph.name, policy.name)
            seen.add(policy.name)

            if policy.label_filter:
                try:
                    encode_label_filter_expression(policy.label_filter)
                except InvalidLabelFilterError as e:
                    raise MalformedSpecError(
                        f"Label filter of policy '{policy.name}' in graph '{graph.name}' cannot be encoded: {e}"
                    ) from e

        for policy in graph.extraction_policies:
            if not policy.reads_from_ingestion and policy.content_source not in seen:
                raise DanglingSourceReferenceError(graph.name, policy.name, policy.content_source)

        cycle = GraphBuilder._find_cycle(graph)
        if cycle:
            raise CyclicGraphError(graph.name, cycle)

    @staticmethod
    def _find_cycle(graph: ExtractionGraph) -> Optional[List[str]]:
        # Each policy has at most one source, so following sources from any
        # policy either reaches ingestion or loops.
        sources = {
            policy.name: (None if policy.reads_from_ingestion else policy.content_source)
            for policy in graph.extraction_policies
        }
        cleared = set()
        for start in graph.policy_names:
            path: List[str] = []
            on_path = set()
            current: Optional[str] = start
            while current is not None and current not in cleared:
                if current in on_path:
                    loop = path[path.index(current):]
                    # report edges in data-flow order: source -> consumer
                    loop.reverse()
                    return loop + [loop[0]]
                path.append(current)
                on_path.add(current)
                current = sources.get(current)
            cleared.update(path)
        return None

    @staticmethod
    def to_wire_format(graph: ExtractionGraph) -> Dict[str, Any]:
        """
        Serialize the externally relevant fields of a graph.

        Optional policy fields are omitted when absent.
        """
        policies = []
        for policy in graph.extraction_policies:
            entry: Dict[str, Any] = {"extractor": policy.extractor, "name": policy.name}
            if policy.input_params is not None:
                entry["input_params"] = dict(policy.input_params)
            if policy.label_filter:
                entry["filters_eq"] = encode_label_filter_expression(policy.label_filter)
            if policy.content_source is not None:
                entry["content_source"] = policy.content_source
            policies.append(entry)
        return {"name": graph.name, "extraction_policies": policies}

    @staticmethod
    def to_yaml(graph: ExtractionGraph) -> str:
        return yaml.safe_dump(GraphBuilder.to_wire_format(graph), sort_keys=False)


def topological_order(graph: ExtractionGraph) -> List[ExtractionPolicy]:
    """Return policies so that every policy follows its content source."""
    GraphBuilder.validate(graph)
    ordered: List[ExtractionPolicy] = []
    visited = {INGESTION_SOURCE}
    frontier = [INGESTION_SOURCE]
    while frontier:
        source = frontier.pop(0)
        for policy in graph.children_of(source):
            if policy.name in visited:
                continue
            visited.add(policy.name)
            ordered.append(policy)
            frontier.append(policy.name)
    return ordered
