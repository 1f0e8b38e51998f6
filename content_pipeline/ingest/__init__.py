from .documents import Document, StructuredDocument, TextDocument, normalize_document, normalize_documents
from .byte_source import (
    ByteSource,
    ByteSourceFactory,
    FileByteSource,
    InMemoryByteSource,
    InMemoryOnly,
    LocalFilesystem,
)

__all__ = [
    "Document",
    "StructuredDocument",
    "TextDocument",
    "normalize_document",
    "normalize_documents",
    "ByteSource",
    "ByteSourceFactory",
    "FileByteSource",
    "InMemoryByteSource",
    "InMemoryOnly",
    "LocalFilesystem",
]
