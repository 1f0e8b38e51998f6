"""
Namespace-scoped client for the content pipeline service.

Ties together graph registration, ingestion, lineage queries, task listing,
completion waiting and search. Graphs are validated locally before they are
sent. The only mutable state is the snapshot of registered graphs, which
changes only on an explicit refresh.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import httpx

from .config import ClientConfig
from .content.data_models import ContentMetadata, ContentPage
from .content.lineage import filter_descendants, with_content_url
from .errors import ContentPipelineError, IncompleteUploadError
from .graph.builder import GraphBuilder
from .graph.data_models import ExtractionGraph, GraphSnapshot, Namespace
from .ingest.byte_source import ByteSource, ByteSourceFactory, InMemoryByteSource, LocalFilesystem
from .ingest.documents import Document, normalize_documents
from .query.data_models import ExtractedMetadata, ExtractResponse, Extractor, IndexInfo, SearchResult, StructuredSchema
from .query.filters import ContentFilter, SearchRequest, SqlQuery, TaskFilter
from .tasks.data_models import TaskPage
from .tasks.waiter import CompletionProbe, CompletionWaiter, TaskPollingProbe, WaitEndpointProbe
from .transport.http import HttpTransport
from .utils import generate_hash_from_string, generate_unique_hex_id

logger = logging.getLogger(__name__)


class ContentPipelineClient:
    """Client for one namespace of the content pipeline service."""

    def __init__(self,
                 config: Optional[ClientConfig] = None,
                 sources: Optional[ByteSourceFactory] = None,
                 http_transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize the client.

        Args:
            config: Service location, namespace and timeouts (defaults if omitted)
            sources: How local paths become upload bytes in this environment
            http_transport: Custom httpx transport, mainly for tests
        """
        self.config = config or ClientConfig()
        self.sources = sources or LocalFilesystem()
        self.transport = HttpTransport(self.config, self.sources, transport=http_transport)
        self._snapshot = GraphSnapshot()

    @property
    def service_url(self) -> str:
        return self.config.service_url

    @property
    def namespace(self) -> str:
        return self.config.namespace

    async def __aenter__(self) -> "ContentPipelineClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self.transport.aclose()

    @classmethod
    async def create_client(cls,
                            config: Optional[ClientConfig] = None,
                            sources: Optional[ByteSourceFactory] = None,
                            http_transport: Optional[httpx.AsyncBaseTransport] = None) -> "ContentPipelineClient":
        return cls(config, sources, http_transport)

    @classmethod
    async def list_namespaces(cls,
                              config: Optional[ClientConfig] = None,
                              http_transport: Optional[httpx.AsyncBaseTransport] = None) -> List[Namespace]:
        async with cls(config, http_transport=http_transport) as client:
            data = await client.transport.get_json("namespaces", root=True)
        return [
            Namespace(
                name=item["name"],
                extraction_graphs=[GraphBuilder.from_dict(g) for g in item.get("extraction_graphs") or []],
            )
            for item in data.get("namespaces", [])
        ]

    @classmethod
    async def create_namespace(cls,
                               name: str,
                               extraction_graphs: Optional[Sequence[ExtractionGraph]] = None,
                               labels: Optional[Dict[str, str]] = None,
                               config: Optional[ClientConfig] = None,
                               sources: Optional[ByteSourceFactory] = None,
                               http_transport: Optional[httpx.AsyncBaseTransport] = None) -> "ContentPipelineClient":
        """Create a namespace and return a client scoped to it."""
        graphs = list(extraction_graphs or [])
        for graph in graphs:
            GraphBuilder.validate(graph)

        client = cls((config or ClientConfig()).with_namespace(name), sources, http_transport)
        try:
            await client.transport.request("POST", "namespaces", root=True, json={
                "name": name,
                "extraction_graphs": [GraphBuilder.to_wire_format(graph) for graph in graphs],
                "labels": labels or {},
            })
        except Exception:
            await client.close()
            raise
        logger.info(f"Created namespace '{name}'")
        return client

    # -- graphs -----------------------------------------------------------

    @property
    def extraction_graphs(self) -> GraphSnapshot:
        """Graphs as of the last refresh; never updated implicitly."""
        return self._snapshot

    async def get_extraction_graphs(self) -> List[ExtractionGraph]:
        """Fetch the namespace's graphs and replace the cached snapshot."""
        data = await self.transport.get_json("extraction_graphs")
        graphs = [GraphBuilder.from_dict(item) for item in data.get("extraction_graphs") or []]
        self._snapshot = GraphSnapshot(
            version=self._snapshot.version + 1,
            graphs=graphs,
            fetched_at=datetime.now(),
        )
        logger.debug(f"Refreshed extraction graphs (version {self._snapshot.version}): {self._snapshot.names}")
        return graphs

    async def refresh(self) -> GraphSnapshot:
        await self.get_extraction_graphs()
        return self._snapshot

    async def create_extraction_graph(self, graph: ExtractionGraph) -> List[str]:
        """
        Register a graph with the service.

        The graph is validated first; an invalid graph raises without any
        network call. The cached snapshot is left untouched.

        Returns:
            Names of the indexes the service created for the graph
        """
        GraphBuilder.validate(graph)
        data = await self.transport.post_json("extraction_graphs", GraphBuilder.to_wire_format(graph))
        indexes = data.get("indexes", [])
        logger.info(f"Registered extraction graph '{graph.name}' with {len(indexes)} index(es)")
        return indexes

    async def link_extraction_graphs(self, source_graph: str, content_source: str, linked_graph: str) -> None:
        """Feed the output of ``content_source`` in ``source_graph`` into ``linked_graph``."""
        await self.transport.request("POST", f"extraction_graphs/{source_graph}/links", json={
            "content_source": content_source,
            "linked_graph_name": linked_graph,
        })

    async def get_extraction_graph_analytics(self, graph_name: str) -> Dict[str, Any]:
        return await self.transport.get_json(f"extraction_graphs/{graph_name}/analytics")

    # -- ingestion --------------------------------------------------------

    async def add_documents(self,
                            extraction_graphs: Union[str, Sequence[str]],
                            documents: Union[Document, Sequence[Document]]) -> List[str]:
        """
        Upload text documents into one or more graphs.

        Returns:
            One content id per (graph, document), graphs outermost
        """
        graph_names = [extraction_graphs] if isinstance(extraction_graphs, str) else list(extraction_graphs)
        normalized = normalize_documents(documents)

        content_ids = []
        for graph_name in graph_names:
            for document in normalized:
                source = InMemoryByteSource.from_text(document.text)
                content_ids.append(await self._upload(graph_name, source, document.labels, document.id))
        logger.info(f"Added {len(content_ids)} document(s) to {', '.join(graph_names)}")
        return content_ids

    async def upload_file(self,
                          extraction_graph: str,
                          source: Union[str, ByteSource],
                          labels: Optional[Dict[str, Any]] = None,
                          content_id: Optional[str] = None) -> str:
        """Upload a local file (path) or a ByteSource into a graph; returns the content id."""
        byte_source = self.sources.resolve(source)
        return await self._upload(extraction_graph, byte_source, labels or {}, content_id)

    async def _upload(self,
                      graph_name: str,
                      source: ByteSource,
                      labels: Mapping[str, Any],
                      content_id: Optional[str]) -> str:
        payload = await source.read()
        params = {"id": content_id} if content_id else None
        response = await self.transport.request(
            "POST",
            f"extraction_graphs/{graph_name}/extract",
            params=params,
            files={"file": (source.filename, payload)},
            data={"labels": json.dumps(dict(labels))},
            headers={"accept": "*/*"},
        )
        body = response.json() if response.content else {}
        new_id = body.get("content_id") or content_id
        if not new_id:
            raise IncompleteUploadError(f"Upload of '{source.filename}' to '{graph_name}' returned no content id")
        logger.debug(f"Uploaded {source.filename} to {graph_name} as {new_id}")
        return new_id

    async def ingest_remote_file(self,
                                 url: str,
                                 mime_type: str,
                                 labels: Dict[str, str],
                                 extraction_graphs: Union[str, Sequence[str]],
                                 content_id: Optional[str] = None) -> str:
        """Ask the service to fetch and ingest a remote file."""
        graph_names = [extraction_graphs] if isinstance(extraction_graphs, str) else list(extraction_graphs)
        body = await self.transport.post_json("ingest_remote_file", {
            "url": url,
            "mime_type": mime_type,
            "labels": labels,
            "extraction_graph_names": graph_names,
            "id": content_id,
        })
        new_id = body.get("content_id") or content_id
        if not new_id:
            raise IncompleteUploadError(f"Ingestion of '{url}' returned no content id")
        return new_id

    async def update_content(self, content_id: str, source: Union[str, ByteSource]) -> None:
        byte_source = self.sources.resolve(source)
        payload = await byte_source.read()
        await self.transport.request("PUT", f"content/{content_id}", files={"file": (byte_source.filename, payload)})

    async def update_labels(self, content_id: str, labels: Dict[str, str]) -> None:
        await self.transport.request("PUT", f"content/{content_id}/labels", json={"labels": labels})

    async def delete_content(self, content_id: str) -> None:
        """Tombstone a content node; it stays in lineage listings."""
        await self.transport.request("DELETE", f"content/{content_id}")

    # -- content ----------------------------------------------------------

    async def get_content_metadata(self, content_id: str) -> ContentMetadata:
        data = await self.transport.get_json(f"content/{content_id}/metadata")
        raw = data.get("content_metadata")
        if not raw:
            raise ContentPipelineError(f"Metadata response for content '{content_id}' has no content_metadata")
        node = ContentMetadata.model_validate(raw)
        return with_content_url(node, self.service_url, self.namespace)

    async def get_structured_metadata(self, content_id: str) -> List[ExtractedMetadata]:
        data = await self.transport.get_json(f"content/{content_id}/metadata")
        return [ExtractedMetadata.model_validate(item) for item in data.get("metadata") or []]

    async def download_content(self, content_id: str) -> bytes:
        response = await self.transport.request("GET", f"content/{content_id}/download")
        return response.content

    async def get_extracted_content(self,
                                    content_id: str,
                                    graph_name: str,
                                    policy_name: str,
                                    blocking: bool = False,
                                    timeout: Optional[float] = None) -> List[ContentMetadata]:
        """
        Content produced by one policy from one ingested document.

        Args:
            content_id: Ingested (root) content id
            graph_name: Graph the policy belongs to
            policy_name: Producing policy
            blocking: Wait for extraction of ``content_id`` first
            timeout: Deadline for the wait, in seconds

        Returns:
            Derived content in server order, with download URLs resolved
        """
        if blocking:
            await self.wait_for_completion(content_id, timeout=timeout)

        data = await self.transport.get_json(
            f"extraction_graphs/{graph_name}/content/{content_id}/extraction_policies/{policy_name}"
        )
        nodes = [ContentMetadata.model_validate(item) for item in data.get("content_tree_metadata") or []]
        return [
            with_content_url(node, self.service_url, self.namespace)
            for node in filter_descendants(nodes, graph_name, policy_name, root_id=content_id)
        ]

    async def list_content(self, content_filter: ContentFilter) -> ContentPage:
        data = await self.transport.get_json(
            f"extraction_graphs/{content_filter.extraction_graph}/content",
            params=content_filter.to_params(self.namespace),
        )
        content_list = [
            with_content_url(ContentMetadata.model_validate(item), self.service_url, self.namespace)
            for item in data.get("content_list") or []
        ]
        total = data.get("total") if content_filter.return_total else None
        return ContentPage(content_list=content_list, total=total)

    # -- tasks ------------------------------------------------------------

    async def list_tasks(self,
                         graph_name: str,
                         policy_name: str,
                         task_filter: Optional[TaskFilter] = None) -> TaskPage:
        task_filter = task_filter or TaskFilter()
        data = await self.transport.get_json(
            f"extraction_graphs/{graph_name}/extraction_policies/{policy_name}/tasks",
            params=task_filter.to_params(self.namespace, graph_name, policy_name),
        )
        page = TaskPage.model_validate({"tasks": data.get("tasks") or []})
        if task_filter.return_total:
            page.total = data.get("total")
        return page

    async def wait_for_completion(self,
                                  content_ids: Union[str, Sequence[str]],
                                  timeout: Optional[float] = None,
                                  probe: Optional[CompletionProbe] = None) -> None:
        """
        Block until extraction for every id has resolved.

        Uses the service's wait endpoint unless another probe is given. The
        first failure aborts the remaining ids.
        """
        waiter = CompletionWaiter(probe or WaitEndpointProbe(self), self.config.poll_interval)
        await waiter.wait(content_ids, timeout=timeout)

    async def wait_for_tasks(self,
                             content_ids: Union[str, Sequence[str]],
                             graph: Union[str, ExtractionGraph],
                             timeout: Optional[float] = None) -> None:
        """
        Poll task listings until every stage of the graph has finished.

        Each ingested id is followed through derived content down to the
        graph's leaf policies. A graph given by name is looked up in the cached
        snapshot, so it must have been fetched with refresh() first.
        """
        if isinstance(graph, str):
            cached = self._snapshot.get(graph)
            if cached is None:
                raise ValueError(f"Extraction graph '{graph}' is not in the snapshot; call refresh() first")
            graph = cached
        probe = TaskPollingProbe(self, graph)
        await self.wait_for_completion(content_ids, timeout=timeout, probe=probe)

    # -- query ------------------------------------------------------------

    async def extractors(self) -> List[Extractor]:
        data = await self.transport.get_json("extractors", root=True)
        return [Extractor.model_validate(item) for item in data.get("extractors") or []]

    async def indexes(self) -> List[IndexInfo]:
        data = await self.transport.get_json("indexes")
        return [IndexInfo.model_validate(item) for item in data.get("indexes") or []]

    async def schemas(self) -> List[StructuredSchema]:
        data = await self.transport.get_json("schemas")
        return [StructuredSchema.model_validate(item) for item in data.get("schemas") or []]

    async def search_index(self,
                           name: str,
                           query: str,
                           top_k: int,
                           filters: Optional[Union[Dict[str, str], List[str]]] = None,
                           include_content: bool = True) -> List[SearchResult]:
        request = SearchRequest(index=name, query=query, k=top_k, filters=filters, include_content=include_content)
        data = await self.transport.post_json(f"indexes/{request.index}/search", request.to_body())
        return [SearchResult.model_validate(item) for item in data.get("results") or []]

    async def sql_query(self, query: str) -> List[Dict[str, Any]]:
        data = await self.transport.post_json("sql_query", SqlQuery(query=query).to_body())
        return [row.get("data") for row in data.get("rows") or []]

    async def extract(self,
                      name: str,
                      content: Union[str, bytes],
                      content_type: str = "text/plain",
                      input_params: Optional[Dict[str, Any]] = None,
                      labels: Optional[Dict[str, str]] = None) -> ExtractResponse:
        """Run an extractor directly on one piece of content without ingesting it."""
        payload = list(content) if isinstance(content, bytes) else content
        data = await self.transport.post_json("extractors/extract", {
            "name": name,
            "content": {
                "content_type": content_type,
                "bytes": payload,
                "features": [],
                "labels": labels or {},
            },
            "input_params": json.dumps(input_params or {}),
        }, root=True)
        return ExtractResponse.model_validate(data)

    # -- ids --------------------------------------------------------------

    @staticmethod
    def generate_unique_hex_id() -> str:
        return generate_unique_hex_id()

    @staticmethod
    def generate_hash_from_string(input_string: str) -> str:
        return generate_hash_from_string(input_string)
