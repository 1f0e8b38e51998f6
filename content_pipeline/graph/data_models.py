"""
Data models for extraction graphs.

An extraction graph is an ordered list of extraction policies. Each policy
reads from the ingestion root or from the output of another policy in the
same graph, which makes the graph a DAG rooted at ingestion.
"""

from datetime import datetime
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

# content_source value meaning "documents as ingested"
INGESTION_SOURCE = "ingestion"

Scalar = Union[bool, int, float, str]


class ExtractionPolicy(BaseModel):
    """A named, parameterized extraction step."""
    model_config = ConfigDict(frozen=True)

    name: str
    extractor: str
    id: Optional[str] = None
    input_params: Optional[Dict[str, Scalar]] = None
    content_source: Optional[str] = None
    label_filter: Optional[Dict[str, str]] = None

    @property
    def reads_from_ingestion(self) -> bool:
        return self.content_source in (None, "", INGESTION_SOURCE)


class ExtractionGraph(BaseModel):
    """An ordered set of extraction policies registered under one name."""
    model_config = ConfigDict(frozen=True)

    name: str
    extraction_policies: List[ExtractionPolicy] = Field(default_factory=list)
    id: Optional[str] = None
    namespace: Optional[str] = None

    @property
    def policy_names(self) -> List[str]:
        return [policy.name for policy in self.extraction_policies]

    def get_policy(self, name: str) -> Optional[ExtractionPolicy]:
        for policy in self.extraction_policies:
            if policy.name == name:
                return policy
        return None

    def edges(self) -> List[Tuple[str, str]]:
        """Return (source, policy) pairs; ingestion-rooted policies use INGESTION_SOURCE."""
        return [
            (INGESTION_SOURCE if policy.reads_from_ingestion else policy.content_source, policy.name)
            for policy in self.extraction_policies
        ]

    def children_of(self, source: str) -> List[ExtractionPolicy]:
        """Policies that consume the output of ``source`` (a policy name or INGESTION_SOURCE)."""
        return [
            policy for policy in self.extraction_policies
            if (INGESTION_SOURCE if policy.reads_from_ingestion else policy.content_source) == source
        ]

    def index_name(self, policy_name: str) -> str:
        """Index names are keyed by graph and policy."""
        return f"{self.name}.{policy_name}"


class Namespace(BaseModel):
    """An isolation boundary grouping graphs, content and indexes."""
    name: str
    extraction_graphs: List[ExtractionGraph] = Field(default_factory=list)


class GraphSnapshot(BaseModel):
    """The namespace's registered graphs as of the last explicit refresh."""
    model_config = ConfigDict(frozen=True)

    version: int = 0
    graphs: List[ExtractionGraph] = Field(default_factory=list)
    fetched_at: Optional[datetime] = None

    def get(self, name: str) -> Optional[ExtractionGraph]:
        for graph in self.graphs:
            if graph.name == name:
                return graph
        return None

    @property
    def names(self) -> List[str]:
        return [graph.name for graph in self.graphs]
