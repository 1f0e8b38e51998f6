"""
Data models for content nodes.

Content nodes are either ingested documents (roots) or content derived from
them by an extraction policy. The service uses a few different field names
for the same attribute depending on the endpoint; aliases accept all of them.
"""

from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ContentMetadata(BaseModel):
    """Lineage and storage metadata for one content node."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    parent_id: Optional[str] = None
    root_content_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("root_content_id", "ingested_content_id")
    )
    namespace: Optional[str] = None
    name: str = ""
    mime_type: str = Field(default="", validation_alias=AliasChoices("mime_type", "content_type"))
    labels: Dict[str, str] = Field(default_factory=dict)
    storage_url: str = ""
    created_at: int = 0
    source_policy: str = Field(default="", validation_alias=AliasChoices("source_policy", "source"))
    size: int = Field(default=0, validation_alias=AliasChoices("size", "size_bytes"))
    hash: str = ""
    member_graphs: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("member_graphs", "extraction_graph_names")
    )
    tombstoned: bool = False
    content_url: Optional[str] = None

    @field_validator("parent_id", "root_content_id", mode="before")
    @classmethod
    def _empty_as_none(cls, value):
        return value or None

    @field_validator("labels", mode="before")
    @classmethod
    def _labels_as_strings(cls, value):
        if value is None:
            return {}
        return {str(k): str(v) for k, v in value.items()}

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


class ContentPage(BaseModel):
    """One page of a content listing."""
    content_list: List[ContentMetadata] = Field(default_factory=list)
    total: Optional[int] = None

    @property
    def last_id(self) -> Optional[str]:
        """Cursor to pass as start_id for the next page, as returned by the service."""
        return self.content_list[-1].id if self.content_list else None
