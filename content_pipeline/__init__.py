"""
Client-side model for content extraction pipelines.

Extraction graphs are defined and validated locally, registered with the
service, and fed documents. The service runs the extractors asynchronously;
this package tracks the resulting tasks and derived content, waits for
completion, and queries content, metadata and indexes.
"""

from .client import ContentPipelineClient
from .config import DEFAULT_NAMESPACE, DEFAULT_SERVICE_URL, ClientConfig, MtlsConfig
from .content import ContentMetadata, ContentPage, ContentTree, filter_descendants, resolve_content_url
from .errors import (
    CompletionTimeoutError,
    ContentPipelineError,
    CyclicGraphError,
    DanglingSourceReferenceError,
    DuplicatePolicyNameError,
    GraphValidationError,
    IncompleteUploadError,
    InvalidLabelFilterError,
    LineageIntegrityError,
    MalformedSpecError,
    TaskFailedError,
    TransportError,
    UnsupportedEnvironmentError,
)
from .graph import INGESTION_SOURCE, ExtractionGraph, ExtractionPolicy, GraphBuilder, GraphSnapshot, Namespace
from .ingest import (
    ByteSource,
    FileByteSource,
    InMemoryByteSource,
    InMemoryOnly,
    LocalFilesystem,
    StructuredDocument,
    TextDocument,
)
from .query import ContentFilter, SearchRequest, SqlQuery, TaskFilter, encode_label_filter
from .tasks import CompletionWaiter, Task, TaskOutcome, TaskPage, TaskPollingProbe, WaitEndpointProbe

__all__ = [
    "ContentPipelineClient",
    "DEFAULT_NAMESPACE",
    "DEFAULT_SERVICE_URL",
    "ClientConfig",
    "MtlsConfig",
    "ContentMetadata",
    "ContentPage",
    "ContentTree",
    "filter_descendants",
    "resolve_content_url",
    "CompletionTimeoutError",
    "ContentPipelineError",
    "CyclicGraphError",
    "DanglingSourceReferenceError",
    "DuplicatePolicyNameError",
    "GraphValidationError",
    "IncompleteUploadError",
    "InvalidLabelFilterError",
    "LineageIntegrityError",
    "MalformedSpecError",
    "TaskFailedError",
    "TransportError",
    "UnsupportedEnvironmentError",
    "INGESTION_SOURCE",
    "ExtractionGraph",
    "ExtractionPolicy",
    "GraphBuilder",
    "GraphSnapshot",
    "Namespace",
    "ByteSource",
    "FileByteSource",
    "InMemoryByteSource",
    "InMemoryOnly",
    "LocalFilesystem",
    "StructuredDocument",
    "TextDocument",
    "ContentFilter",
    "SearchRequest",
    "SqlQuery",
    "TaskFilter",
    "encode_label_filter",
    "CompletionWaiter",
    "Task",
    "TaskOutcome",
    "TaskPage",
    "TaskPollingProbe",
    "WaitEndpointProbe",
]
