"""
Filter and request construction for content listing, task listing and search.

Everything here is a pure transformation from structured parameters into the
query parameters or JSON bodies the service expects. Label equality filters
use a ``key:value`` textual encoding; values containing the separator are
rejected unless escaping is requested explicitly.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote, unquote

from pydantic import BaseModel, Field, field_validator

from ..errors import InvalidLabelFilterError

LABEL_SEPARATOR = ":"
# joins the filters of a policy's filters_eq
FILTER_SEPARATOR = ","

LabelFilters = Union[Mapping[str, str], List[str]]


def encode_label_filter(key: str, value: str, escape: bool = False) -> str:
    """
    Encode one label equality filter as ``key:value``.

    Args:
        key: Label name; must be non-empty and free of the separator
        value: Label value
        escape: Percent-encode ``%`` and ``:`` in the value instead of rejecting it

    Returns:
        The encoded filter string

    Raises:
        InvalidLabelFilterError: If the filter cannot be encoded unambiguously
    """
    if not key:
        raise InvalidLabelFilterError("Label filter key must not be empty")
    if LABEL_SEPARATOR in key:
        raise InvalidLabelFilterError(f"Label filter key '{key}' contains the '{LABEL_SEPARATOR}' separator")

    value = str(value)
    if LABEL_SEPARATOR in value or (escape and "%" in value):
        if not escape:
            raise InvalidLabelFilterError(
                f"Label filter value '{value}' for key '{key}' contains the '{LABEL_SEPARATOR}' separator"
            )
        value = quote(value, safe="")
    return f"{key}{LABEL_SEPARATOR}{value}"


def decode_label_filter(text: str, unescape: bool = False) -> Tuple[str, str]:
    """Split an encoded ``key:value`` filter back into (key, value)."""
    key, separator, value = text.partition(LABEL_SEPARATOR)
    if not separator or not key:
        raise InvalidLabelFilterError(f"Label filter '{text}' is not of the form key{LABEL_SEPARATOR}value")
    return key, unquote(value) if unescape else value


def encode_label_filters(labels: Optional[LabelFilters], escape: bool = False) -> Optional[List[str]]:
    """Encode a mapping of label filters; pre-encoded strings are checked and passed through."""
    if labels is None:
        return None
    if isinstance(labels, Mapping):
        return [encode_label_filter(key, value, escape=escape) for key, value in labels.items()]

    encoded = []
    for item in labels:
        key, value = decode_label_filter(item)
        # a second separator in an unescaped string means the split was a guess
        if LABEL_SEPARATOR in value and not escape:
            raise InvalidLabelFilterError(f"Label filter '{item}' contains more than one '{LABEL_SEPARATOR}'")
        encoded.append(item if not escape else encode_label_filter(key, value, escape=True))
    return encoded


def encode_label_filter_expression(labels: Mapping[str, str]) -> str:
    """
    Encode a mapping as a comma-joined ``k1:v1,k2:v2`` expression.

    Raises:
        InvalidLabelFilterError: If a key or value contains either separator
    """
    parts = []
    for key, value in labels.items():
        if FILTER_SEPARATOR in key or FILTER_SEPARATOR in str(value):
            raise InvalidLabelFilterError(
                f"Label filter '{key}{LABEL_SEPARATOR}{value}' contains the '{FILTER_SEPARATOR}' separator"
            )
        parts.append(encode_label_filter(key, value))
    return FILTER_SEPARATOR.join(parts)


def parse_label_filter_expression(expression: str) -> Dict[str, str]:
    """Parse a comma-joined ``k1:v1,k2:v2`` expression into a mapping."""
    labels = {}
    for part in expression.split(FILTER_SEPARATOR):
        part = part.strip()
        if not part:
            continue
        key, value = decode_label_filter(part)
        if LABEL_SEPARATOR in value:
            raise InvalidLabelFilterError(f"Label filter '{part}' contains more than one '{LABEL_SEPARATOR}'")
        labels[key.strip()] = value.strip()
    return labels


def _drop_none(params: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in params.items() if value is not None}


class ContentFilter(BaseModel):
    """Parameters for listing content produced under an extraction graph."""
    extraction_graph: str
    source: Optional[str] = None  # producing policy name, or "ingestion"
    parent_id: Optional[str] = None
    ingested_content_id: Optional[str] = None
    labels_eq: Optional[Dict[str, str]] = None
    start_id: Optional[str] = None  # opaque cursor from a previous listing
    limit: Optional[int] = Field(default=None, gt=0)
    return_total: bool = False
    escape_labels: bool = False

    def to_params(self, namespace: str) -> Dict[str, Any]:
        """Build the query parameters for a content listing request."""
        return _drop_none({
            "namespace": namespace,
            "extraction_graph": self.extraction_graph,
            "source": self.source,
            "parent_id": self.parent_id,
            "ingested_content_id": self.ingested_content_id,
            "labels_eq": encode_label_filters(self.labels_eq, escape=self.escape_labels),
            "start_id": self.start_id,
            "limit": self.limit,
            "return_total": self.return_total,
        })


class TaskFilter(BaseModel):
    """Parameters for listing the tasks of one extraction policy."""
    content_id: Optional[str] = None
    outcome: Optional[str] = None
    start_id: Optional[str] = None  # opaque cursor from a previous listing
    limit: Optional[int] = Field(default=None, gt=0)
    return_total: bool = False

    def to_params(self, namespace: str, graph_name: str, policy_name: str) -> Dict[str, Any]:
        return _drop_none({
            "namespace": namespace,
            "extraction_graph": graph_name,
            "extraction_policy": policy_name,
            "content_id": self.content_id,
            "outcome": self.outcome,
            "start_id": self.start_id,
            "limit": self.limit,
            "return_total": self.return_total,
        })


class SearchRequest(BaseModel):
    """A k-nearest search against one index."""
    index: str
    query: str
    k: int = Field(gt=0)
    filters: Optional[Union[Dict[str, str], List[str]]] = None
    include_content: bool = True
    escape_labels: bool = False

    @field_validator("index")
    @classmethod
    def _index_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("index name must not be empty")
        return value

    def to_body(self) -> Dict[str, Any]:
        """Build the JSON body for ``indexes/{index}/search``."""
        body: Dict[str, Any] = {"query": self.query, "k": self.k}
        filters = encode_label_filters(self.filters, escape=self.escape_labels)
        if filters is not None:
            body["filters"] = filters
        body["include_content"] = self.include_content
        return body


class SqlQuery(BaseModel):
    """A SQL-like query over structured metadata tables."""
    query: str

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("query must not be empty")
        return value

    def to_body(self) -> Dict[str, Any]:
        return {"query": self.query}
