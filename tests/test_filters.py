"""
Tests for label filter encoding and request construction.
"""

import pytest
from pydantic import ValidationError

from content_pipeline import ContentFilter, InvalidLabelFilterError, SearchRequest, SqlQuery, TaskFilter
from content_pipeline.query import (
    decode_label_filter,
    encode_label_filter,
    encode_label_filter_expression,
    encode_label_filters,
    parse_label_filter_expression,
)


class TestLabelFilters:

    def test_encodes_key_value(self):
        assert encode_label_filter("source", "test") == "source:test"

    def test_rejects_separator_in_value(self):
        with pytest.raises(InvalidLabelFilterError):
            encode_label_filter("key", "value:with:colon")

    def test_escapes_separator_when_asked(self):
        encoded = encode_label_filter("key", "value:with:colon", escape=True)

        assert encoded == "key:value%3Awith%3Acolon"
        assert encoded.count(":") == 1
        assert decode_label_filter(encoded, unescape=True) == ("key", "value:with:colon")

    def test_escaping_percent_keeps_decoding_unambiguous(self):
        encoded = encode_label_filter("rate", "50%", escape=True)
        assert decode_label_filter(encoded, unescape=True) == ("rate", "50%")

    @pytest.mark.parametrize("key", ["", "a:b"])
    def test_rejects_bad_keys(self, key):
        with pytest.raises(InvalidLabelFilterError):
            encode_label_filter(key, "v", escape=True)

    def test_invalid_label_filter_is_a_value_error(self):
        with pytest.raises(ValueError):
            encode_label_filter("k", "a:b")

    def test_encode_many(self):
        assert encode_label_filters(None) is None
        assert encode_label_filters({"a": "1", "b": "2"}) == ["a:1", "b:2"]
        assert encode_label_filters(["a:1"]) == ["a:1"]
        with pytest.raises(InvalidLabelFilterError):
            encode_label_filters(["a:1:2"])
        assert encode_label_filters(["a:1:2"], escape=True) == ["a:1%3A2"]

    def test_expression_joins_filters(self):
        assert encode_label_filter_expression({"lang": "en", "kind": "pdf"}) == "lang:en,kind:pdf"
        assert parse_label_filter_expression("lang:en,kind:pdf") == {"lang": "en", "kind": "pdf"}

    @pytest.mark.parametrize("labels", [{"topic": "a,b"}, {"a,b": "v"}, {"url": "http://x"}])
    def test_expression_rejects_separators(self, labels):
        with pytest.raises(InvalidLabelFilterError):
            encode_label_filter_expression(labels)


class TestContentFilter:

    def test_minimal_params(self):
        params = ContentFilter(extraction_graph="kb").to_params("ns")
        assert params == {"namespace": "ns", "extraction_graph": "kb", "return_total": False}

    def test_full_params(self):
        params = ContentFilter(
            extraction_graph="kb",
            source="c1",
            parent_id="doc",
            labels_eq={"source": "test"},
            start_id="cursor-1",
            limit=10,
            return_total=True,
        ).to_params("ns")

        assert params == {
            "namespace": "ns",
            "extraction_graph": "kb",
            "source": "c1",
            "parent_id": "doc",
            "labels_eq": ["source:test"],
            "start_id": "cursor-1",
            "limit": 10,
            "return_total": True,
        }

    def test_label_separator_detected(self):
        with pytest.raises(InvalidLabelFilterError):
            ContentFilter(extraction_graph="kb", labels_eq={"k": "value:with:colon"}).to_params("ns")

    def test_limit_must_be_positive(self):
        with pytest.raises(ValidationError):
            ContentFilter(extraction_graph="kb", limit=0)


def test_task_filter_params():
    params = TaskFilter(content_id="c", start_id="t9", limit=5).to_params("ns", "kb", "c1")
    assert params == {
        "namespace": "ns",
        "extraction_graph": "kb",
        "extraction_policy": "c1",
        "content_id": "c",
        "start_id": "t9",
        "limit": 5,
        "return_total": False,
    }


class TestSearchRequest:

    def test_body_without_filters(self):
        body = SearchRequest(index="kb.c2.embedding", query="hello", k=3).to_body()
        assert body == {"query": "hello", "k": 3, "include_content": True}

    def test_body_with_filters(self):
        body = SearchRequest(index="i", query="q", k=1, filters={"lang": "en"}, include_content=False).to_body()
        assert body == {"query": "q", "k": 1, "filters": ["lang:en"], "include_content": False}

    @pytest.mark.parametrize("kwargs", [
        {"index": "i", "query": "q", "k": 0},
        {"index": " ", "query": "q", "k": 1},
    ])
    def test_invalid_requests(self, kwargs):
        with pytest.raises(ValidationError):
            SearchRequest(**kwargs)


def test_sql_query():
    assert SqlQuery(query="select * from kb").to_body() == {"query": "select * from kb"}
    with pytest.raises(ValidationError):
        SqlQuery(query="  ")
