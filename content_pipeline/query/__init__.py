from .filters import (
    ContentFilter,
    SearchRequest,
    SqlQuery,
    TaskFilter,
    decode_label_filter,
    encode_label_filter,
    encode_label_filters,
    encode_label_filter_expression,
    parse_label_filter_expression,
)
from .data_models import (
    EmbeddingSchema,
    ExtractedMetadata,
    Extractor,
    IndexInfo,
    SearchResult,
    StructuredSchema,
)

__all__ = [
    "ContentFilter",
    "SearchRequest",
    "SqlQuery",
    "TaskFilter",
    "decode_label_filter",
    "encode_label_filter",
    "encode_label_filters",
    "encode_label_filter_expression",
    "parse_label_filter_expression",
    "EmbeddingSchema",
    "ExtractedMetadata",
    "Extractor",
    "IndexInfo",
    "SearchResult",
    "StructuredSchema",
]
