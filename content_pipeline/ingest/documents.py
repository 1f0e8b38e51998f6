"""
Document inputs for ingestion.

A document is either plain text or text with labels and an optional
caller-chosen id. Both are normalised to StructuredDocument before upload.
"""

from typing import Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, Field

TEXT_MIME_TYPE = "text/plain"


class TextDocument(BaseModel):
    """Plain text with no labels."""
    text: str


class StructuredDocument(BaseModel):
    """Text with labels and an optional content id."""
    text: str
    labels: Dict[str, str] = Field(default_factory=dict)
    id: Optional[str] = None


Document = Union[TextDocument, StructuredDocument]


def normalize_document(document: Document) -> StructuredDocument:
    if isinstance(document, StructuredDocument):
        labels = dict(document.labels)
        text, doc_id = document.text, document.id
    elif isinstance(document, TextDocument):
        labels = {}
        text, doc_id = document.text, None
    else:
        raise TypeError(f"Expected TextDocument or StructuredDocument, got {type(document).__name__}")

    labels["mime_type"] = TEXT_MIME_TYPE
    return StructuredDocument(text=text, labels=labels, id=doc_id)


def normalize_documents(documents: Union[Document, Sequence[Document]]) -> List[StructuredDocument]:
    """Normalise one document or a sequence of them, keeping order."""
    if isinstance(documents, (TextDocument, StructuredDocument)):
        documents = [documents]
    return [normalize_document(document) for document in documents]
