"""Event store client: commit, stream, query and status operations."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import TracebackType
from typing import Self

import httpx
from pydantic import JsonValue

from inoovum_eventstore.codec import OutboundLike, decode_event, encode_commit_body
from inoovum_eventstore.config import DEFAULT_TIMEOUT_SECONDS, ClientConfig
from inoovum_eventstore.models.events import CloudEvent
from inoovum_eventstore.ndjson import DecodeReport, decode_ndjson
from inoovum_eventstore.transport import (
    NDJSON_MEDIA_TYPE,
    TEXT_MEDIA_TYPE,
    AsyncHTTPTransport,
    HTTPTransport,
)

STREAM_ENDPOINT = "stream"
COMMIT_ENDPOINT = "commit"
QUERY_ENDPOINT = "q"
PING_ENDPOINT = "status/ping"
AUDIT_ENDPOINT = "status/audit"

logger = logging.getLogger(__name__)


class _EventStoreBase:
    """Request shaping and response decoding shared by both client flavours."""

    def __init__(self, config: ClientConfig, log: logging.Logger | None) -> None:
        self._config = config
        self._log = log or logger

    @property
    def config(self) -> ClientConfig:
        return self._config

    def _events_report(self, response: httpx.Response) -> DecodeReport[CloudEvent]:
        return decode_ndjson(response.text, transform=decode_event, log=self._log)

    def _query_report(self, response: httpx.Response) -> DecodeReport[JsonValue]:
        return decode_ndjson(response.text, log=self._log)


class EventStore(_EventStoreBase):
    """Blocking client for one event store endpoint.

    Configuration is fixed at construction; every call is one independent
    request, so an instance may be shared between threads.
    """

    def __init__(
        self,
        api_url: str,
        api_version: str,
        auth_token: str,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        log: logging.Logger | None = None,
        client: httpx.Client | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        config = ClientConfig(
            api_url=api_url,
            api_version=api_version,
            auth_token=auth_token,
            timeout_seconds=timeout_seconds,
        )
        super().__init__(config, log)
        self._transport = HTTPTransport(config, client=client, transport=transport, log=self._log)

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        *,
        log: logging.Logger | None = None,
        client: httpx.Client | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> Self:
        return cls(
            config.api_url,
            config.api_version,
            config.auth_token,
            timeout_seconds=config.timeout_seconds,
            log=log,
            client=client,
            transport=transport,
        )

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        log: logging.Logger | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> Self:
        """Build a client from ``EVENTSTORE_*`` environment variables."""
        return cls.from_config(ClientConfig.from_env(environ), log=log, transport=transport)

    def stream_events(self, subject: str) -> list[CloudEvent]:
        """Return the events stored under ``subject``, in server order."""
        return self.stream_events_report(subject).items

    def stream_events_report(self, subject: str) -> DecodeReport[CloudEvent]:
        """Like ``stream_events`` but also report the lines that were skipped."""
        response = self._transport.send(
            "streaming events",
            "POST",
            STREAM_ENDPOINT,
            json_body={"subject": subject},
            accept=NDJSON_MEDIA_TYPE,
        )
        return self._events_report(response)

    def commit_events(self, events: Iterable[OutboundLike]) -> None:
        """Append ``events`` (each with subject, type and data) in the given order."""
        body = encode_commit_body(events)
        self._transport.send("committing events", "POST", COMMIT_ENDPOINT, json_body=body)

    def q(self, query: str) -> list[JsonValue]:
        """Run an ad-hoc query and return the raw result objects."""
        return self.query_report(query).items

    def query_report(self, query: str) -> DecodeReport[JsonValue]:
        response = self._transport.send(
            "querying",
            "POST",
            QUERY_ENDPOINT,
            json_body={"query": query},
            accept=NDJSON_MEDIA_TYPE,
        )
        return self._query_report(response)

    def ping(self) -> str:
        response = self._transport.send("pinging", "GET", PING_ENDPOINT, accept=TEXT_MEDIA_TYPE)
        return response.text

    def audit(self) -> str:
        response = self._transport.send(
            "running audit", "GET", AUDIT_ENDPOINT, accept=TEXT_MEDIA_TYPE
        )
        return response.text

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class AsyncEventStore(_EventStoreBase):
    """Asyncio client with the same operations as ``EventStore``."""

    def __init__(
        self,
        api_url: str,
        api_version: str,
        auth_token: str,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        log: logging.Logger | None = None,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        config = ClientConfig(
            api_url=api_url,
            api_version=api_version,
            auth_token=auth_token,
            timeout_seconds=timeout_seconds,
        )
        super().__init__(config, log)
        self._transport = AsyncHTTPTransport(
            config, client=client, transport=transport, log=self._log
        )

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        *,
        log: logging.Logger | None = None,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Self:
        return cls(
            config.api_url,
            config.api_version,
            config.auth_token,
            timeout_seconds=config.timeout_seconds,
            log=log,
            client=client,
            transport=transport,
        )

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        log: logging.Logger | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Self:
        return cls.from_config(ClientConfig.from_env(environ), log=log, transport=transport)

    async def stream_events(self, subject: str) -> list[CloudEvent]:
        return (await self.stream_events_report(subject)).items

    async def stream_events_report(self, subject: str) -> DecodeReport[CloudEvent]:
        response = await self._transport.send(
            "streaming events",
            "POST",
            STREAM_ENDPOINT,
            json_body={"subject": subject},
            accept=NDJSON_MEDIA_TYPE,
        )
        return self._events_report(response)

    async def commit_events(self, events: Iterable[OutboundLike]) -> None:
        body = encode_commit_body(events)
        await self._transport.send("committing events", "POST", COMMIT_ENDPOINT, json_body=body)

    async def q(self, query: str) -> list[JsonValue]:
        return (await self.query_report(query)).items

    async def query_report(self, query: str) -> DecodeReport[JsonValue]:
        response = await self._transport.send(
            "querying",
            "POST",
            QUERY_ENDPOINT,
            json_body={"query": query},
            accept=NDJSON_MEDIA_TYPE,
        )
        return self._query_report(response)

    async def ping(self) -> str:
        response = await self._transport.send(
            "pinging", "GET", PING_ENDPOINT, accept=TEXT_MEDIA_TYPE
        )
        return response.text

    async def audit(self) -> str:
        response = await self._transport.send(
            "running audit", "GET", AUDIT_ENDPOINT, accept=TEXT_MEDIA_TYPE
        )
        return response.text

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
