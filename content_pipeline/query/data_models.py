"""
Read-only descriptions of server state: indexes, schemas, extractors,
structured metadata and search hits.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..content.data_models import ContentMetadata


class EmbeddingSchema(BaseModel):
    """Shape of an embedding index."""
    distance: str
    dim: int


class StructuredSchema(BaseModel):
    """Column types of a structured metadata table."""
    model_config = ConfigDict(extra="ignore")

    columns: Dict[str, Any] = Field(default_factory=dict)
    content_source: str = ""
    namespace: str = ""


class IndexInfo(BaseModel):
    """A searchable index keyed by graph and policy."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str
    schema_: Dict[str, Any] = Field(default_factory=dict, alias="schema")

    @property
    def graph_name(self) -> str:
        return self.name.split(".", 1)[0]

    @property
    def policy_name(self) -> Optional[str]:
        parts = self.name.split(".")
        return parts[1] if len(parts) > 1 else None

    @property
    def embedding(self) -> Optional[EmbeddingSchema]:
        if "dim" in self.schema_ and "distance" in self.schema_:
            return EmbeddingSchema(distance=self.schema_["distance"], dim=self.schema_["dim"])
        return None


class Extractor(BaseModel):
    """An extractor available on the service."""
    model_config = ConfigDict(extra="ignore")

    name: str
    description: str = ""
    input_mime_types: List[str] = Field(default_factory=list)
    input_params: Dict[str, Any] = Field(default_factory=dict)
    outputs: Dict[str, Any] = Field(default_factory=dict)

    def embedding_outputs(self) -> Dict[str, EmbeddingSchema]:
        """Outputs that describe embeddings (those with dim and distance)."""
        schemas = self.outputs.get("outputs", self.outputs) or {}
        return {
            name: EmbeddingSchema(**schema)
            for name, schema in schemas.items()
            if isinstance(schema, dict) and "dim" in schema and "distance" in schema
        }


class ExtractedMetadata(BaseModel):
    """Structured metadata one extractor attached to a content node."""
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    content_id: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    extractor_name: str = ""


class SearchResult(BaseModel):
    """One hit from an index search."""
    model_config = ConfigDict(extra="ignore")

    content_id: str
    text: str = ""
    confidence_score: float = 0.0
    labels: Dict[str, Any] = Field(default_factory=dict)
    content_metadata: Optional[ContentMetadata] = None
    root_content_metadata: Optional[ContentMetadata] = None


class Feature(BaseModel):
    """A feature produced by a direct extractor call."""
    feature_type: str = "unknown"  # "embedding", "metadata" or "unknown"
    name: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)


class ExtractedContent(BaseModel):
    content_type: str
    bytes: Union[str, List[int]] = Field(default_factory=list)
    features: List[Feature] = Field(default_factory=list)
    labels: Dict[str, str] = Field(default_factory=dict)

    def text(self) -> str:
        if isinstance(self.bytes, str):
            return self.bytes
        return bytes(self.bytes).decode("utf-8", errors="replace")


class ExtractResponse(BaseModel):
    """Result of running an extractor directly on one piece of content."""
    features: List[Feature] = Field(default_factory=list)
    content: List[ExtractedContent] = Field(default_factory=list)
