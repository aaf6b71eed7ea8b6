"""HTTP transport implementations for sync and async clients."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any

import httpx

from .config import HTTPConfig


@dataclass(frozen=True, slots=True)
class JSONBody:
    """JSON request body - automatically sets Content-Type to application/json."""

    data: Any


@dataclass(frozen=True, slots=True)
class BytesBody:
    """Raw bytes request body with explicit content type."""

    data: bytes
    content_type: str = "application/octet-stream"


RequestBody = JSONBody | BytesBody | None


def _prepare(
    config: HTTPConfig, body: RequestBody, headers: dict[str, str] | None
) -> tuple[dict[str, str], Any, bytes | None]:
    request_headers = config.get_headers()
    if headers:
        request_headers.update(headers)

    json_data: Any | None = None
    raw_content: bytes | None = None
    if isinstance(body, JSONBody):
        json_data = body.data
    elif isinstance(body, BytesBody):
        raw_content = body.data
        request_headers.setdefault("content-type", body.content_type)
    return request_headers, json_data, raw_content


class BaseTransport(abc.ABC):
    """Abstract base class for HTTP transports.

    URLs are absolute: B2 hands out a different host per account (API URL,
    download URL) and per upload (upload URLs), so there is no base URL.
    """

    def __init__(self, config: HTTPConfig) -> None:
        self._config = config

    @property
    def config(self) -> HTTPConfig:
        return self._config

    @abc.abstractmethod
    async def send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        body: RequestBody = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """Send an HTTP request and return the response."""
        ...

    @abc.abstractmethod
    def close(self) -> None:
        """Close any underlying resources."""
        ...


class BlockingTransport(BaseTransport):
    """
    Synchronous HTTP transport using httpx.Client.

    Methods are declared async but don't actually await anything,
    allowing them to be executed via run_sync().
    """

    def __init__(self, config: HTTPConfig, client: httpx.Client | None = None) -> None:
        super().__init__(config)
        self._owns_client = client is None
        self._client = client

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=httpx.Timeout(self._config.timeout))
        return self._client

    async def send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        body: RequestBody = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """Send a synchronous HTTP request (wrapped as async for run_sync)."""
        request_headers, json_data, raw_content = _prepare(self._config, body, headers)
        effective_timeout = timeout if timeout is not None else self._config.timeout
        return self._get_client().request(
            method,
            url,
            params=params or None,
            json=json_data,
            content=raw_content,
            headers=request_headers,
            timeout=httpx.Timeout(effective_timeout),
        )

    def close(self) -> None:
        """Close the underlying HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
        self._client = None


class AsyncTransport(BaseTransport):
    """Asynchronous HTTP transport using httpx.AsyncClient."""

    def __init__(self, config: HTTPConfig, client: httpx.AsyncClient | None = None) -> None:
        super().__init__(config)
        self._owns_client = client is None
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._config.timeout))
        return self._client

    async def send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        body: RequestBody = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """Send an asynchronous HTTP request."""
        request_headers, json_data, raw_content = _prepare(self._config, body, headers)
        effective_timeout = timeout if timeout is not None else self._config.timeout
        return await self._get_client().request(
            method,
            url,
            params=params or None,
            json=json_data,
            content=raw_content,
            headers=request_headers,
            timeout=httpx.Timeout(effective_timeout),
        )

    def close(self) -> None:
        """Drop the client reference; use aclose() to release connections."""
        self._client = None

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None


__all__ = [
    "BaseTransport",
    "BlockingTransport",
    "AsyncTransport",
    "JSONBody",
    "BytesBody",
    "RequestBody",
]
