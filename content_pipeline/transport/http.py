"""
HTTP transport for the content pipeline service, built on httpx.

Paths are relative to the namespace URL unless ``root=True``, in which case
they are relative to the service URL. Every failure, whether a connection
problem or a non-2xx response, is raised as TransportError. Nothing is
retried here.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ..config import ClientConfig
from ..errors import TransportError
from ..ingest.byte_source import ByteSourceFactory
from .tls import create_ssl_context

logger = logging.getLogger(__name__)


class HttpTransport:
    """Thin async wrapper around httpx.AsyncClient."""

    def __init__(self,
                 config: ClientConfig,
                 sources: Optional[ByteSourceFactory] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        verify: Any = True
        if config.mtls is not None:
            verify = create_ssl_context(config.mtls, sources)
        self._client = httpx.AsyncClient(timeout=config.timeout, verify=verify, transport=transport)

    def url_for(self, path: str, root: bool = False) -> str:
        base = self.config.service_url.rstrip("/") if root else self.config.namespace_url
        return f"{base}/{path.lstrip('/')}" if path else base

    async def request(self,
                      method: str,
                      path: str,
                      json: Any = None,
                      params: Optional[Dict[str, Any]] = None,
                      files: Any = None,
                      data: Optional[Dict[str, Any]] = None,
                      headers: Optional[Dict[str, str]] = None,
                      root: bool = False) -> httpx.Response:
        """
        Send one request.

        Args:
            method: HTTP method
            path: Path relative to the namespace (or service, with root=True)
            json: JSON body
            params: Query parameters; list values become repeated keys
            files: Multipart files, as accepted by httpx
            data: Multipart/form fields
            headers: Extra headers
            root: Resolve ``path`` against the service URL

        Returns:
            The successful response

        Raises:
            TransportError: On connection failure or a non-2xx status
        """
        url = self.url_for(path, root=root)
        logger.debug(f"{method} {url} params={params}")
        try:
            response = await self._client.request(
                method, url, json=json, params=params, files=files, data=data, headers=headers
            )
        except httpx.HTTPError as e:
            logger.error(f"Error: {method} {url}: {e}")
            raise TransportError(method, url, detail=str(e)) from e

        if response.is_error:
            logger.error(f"Error: {method} {url} returned {response.status_code}")
            raise TransportError(method, url, status_code=response.status_code, detail=response.text)
        return response

    async def get_json(self, path: str, params: Optional[Dict[str, Any]] = None, root: bool = False) -> Any:
        response = await self.request("GET", path, params=params, root=root)
        return response.json()

    async def post_json(self, path: str, body: Any = None, root: bool = False) -> Any:
        response = await self.request("POST", path, json=body, root=root)
        return response.json() if response.content else {}

    async def aclose(self) -> None:
        await self._client.aclose()
