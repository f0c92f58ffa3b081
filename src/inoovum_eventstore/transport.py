"""Authenticated HTTP transport on top of httpx."""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Literal, Self

import httpx
from pydantic import JsonValue

from inoovum_eventstore.config import ClientConfig
from inoovum_eventstore.errors import TransportError

type HTTPMethod = Literal["GET", "POST"]

NDJSON_MEDIA_TYPE = "application/x-ndjson"
TEXT_MEDIA_TYPE = "text/plain"

logger = logging.getLogger(__name__)


class _TransportBase:
    def __init__(self, config: ClientConfig, *, log: logging.Logger | None = None) -> None:
        self._config = config
        self._log = log or logger

    @property
    def config(self) -> ClientConfig:
        return self._config

    def _headers(self, accept: str | None) -> dict[str, str]:
        headers = self._config.default_headers
        if accept is not None:
            headers["Accept"] = accept
        return headers

    def _accept(
        self,
        operation: str,
        method: HTTPMethod,
        response: httpx.Response,
    ) -> httpx.Response:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise self._failure(operation, exc) from exc
        self._log.debug("%s %s -> %s", method, response.request.url, response.status_code)
        return response

    def _failure(self, operation: str, exc: Exception) -> TransportError:
        """Classify ``exc`` and emit the single diagnostic for this failure."""
        if isinstance(exc, httpx.TimeoutException):
            error = TransportError(
                str(exc) or "request timed out",
                category="network_timeout",
                operation=operation,
            )
        elif isinstance(exc, httpx.HTTPStatusError):
            status_code = exc.response.status_code
            error = TransportError(
                f"http status {status_code}",
                category="http_status",
                operation=operation,
                status_code=status_code,
            )
        else:
            error = TransportError(str(exc), category="transport_error", operation=operation)
        self._log.error("Error while %s: %s", operation, error)
        return error


class HTTPTransport(_TransportBase):
    """Blocking transport backed by ``httpx.Client``."""

    def __init__(
        self,
        config: ClientConfig,
        *,
        client: httpx.Client | None = None,
        transport: httpx.BaseTransport | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        super().__init__(config, log=log)
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=config.timeout_seconds,
            follow_redirects=True,
            transport=transport,
        )

    def send(
        self,
        operation: str,
        method: HTTPMethod,
        endpoint: str,
        *,
        json_body: JsonValue = None,
        accept: str | None = None,
    ) -> httpx.Response:
        """Issue one request and return the fully read 2xx response."""
        url = self._config.endpoint_url(endpoint)
        try:
            response = self._client.request(
                method,
                url,
                json=json_body,
                headers=self._headers(accept),
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise self._failure(operation, exc) from exc
        return self._accept(operation, method, response)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class AsyncHTTPTransport(_TransportBase):
    """Asyncio transport backed by ``httpx.AsyncClient``."""

    def __init__(
        self,
        config: ClientConfig,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        super().__init__(config, log=log)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=config.timeout_seconds,
            follow_redirects=True,
            transport=transport,
        )

    async def send(
        self,
        operation: str,
        method: HTTPMethod,
        endpoint: str,
        *,
        json_body: JsonValue = None,
        accept: str | None = None,
    ) -> httpx.Response:
        """Issue one request and return the fully read 2xx response."""
        url = self._config.endpoint_url(endpoint)
        try:
            response = await self._client.request(
                method,
                url,
                json=json_body,
                headers=self._headers(accept),
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise self._failure(operation, exc) from exc
        return self._accept(operation, method, response)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
