"""
Shared fixtures: a recording mock service built on httpx.MockTransport.
"""

import json
from typing import Any, Callable, Dict, List, Tuple, Union

import httpx
import pytest

from content_pipeline import ClientConfig, ContentPipelineClient

SERVICE_URL = "http://pipeline.test:8900"

Handler = Union[Dict[str, Any], Callable[[httpx.Request], httpx.Response]]


class MockService:
    """Routes (method, path) to canned JSON or handlers and records requests."""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Handler] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, handler: Handler) -> None:
        self.routes[(method, path)] = handler

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"detail": "not found"})
        if callable(handler):
            return handler(request)
        return httpx.Response(200, json=handler)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def last(self, method: str, path: str) -> httpx.Request:
        for request in reversed(self.requests):
            if request.method == method and request.url.path == path:
                return request
        raise AssertionError(f"No {method} {path} request was made")

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content)


@pytest.fixture
def service():
    return MockService()


@pytest.fixture
def config():
    return ClientConfig(service_url=SERVICE_URL, namespace="test", poll_interval=0)


@pytest.fixture
def client(service, config):
    return ContentPipelineClient(config, http_transport=service.transport())


def content_item(content_id: str, parent_id: str = "", root_id: str = "", source: str = "",
                 graphs: Tuple[str, ...] = ("kb",), storage_url: str = "file:///data/blob") -> Dict[str, Any]:
    """A content metadata record as the service returns it."""
    return {
        "id": content_id,
        "parent_id": parent_id,
        "root_content_id": root_id,
        "namespace": "test",
        "name": f"{content_id}.txt",
        "mime_type": "text/plain",
        "labels": {"source": "test"},
        "storage_url": storage_url,
        "created_at": 1700000000,
        "source": source,
        "size": 12,
        "hash": "abc123",
        "extraction_graph_names": list(graphs),
    }
