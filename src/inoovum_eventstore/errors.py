"""Error taxonomy for the event store client."""

from __future__ import annotations

from typing import Literal

type TransportErrorCategory = Literal[
    "network_timeout",
    "http_status",
    "transport_error",
]
type CodecErrorKind = Literal[
    "missing_field",
    "malformed_timestamp",
    "invalid_field",
    "not_an_object",
]


class EventStoreError(RuntimeError):
    """Base class for every error raised by this package."""


class ConfigurationError(EventStoreError):
    """Raised when a client is constructed with unusable settings."""


class TransportError(EventStoreError):
    """HTTP-level failure with explicit category."""

    def __init__(
        self,
        message: str,
        *,
        category: TransportErrorCategory,
        operation: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.operation = operation
        self.status_code = status_code


class CodecError(EventStoreError):
    """Event could not be mapped to or from its wire shape."""

    def __init__(self, message: str, *, kind: CodecErrorKind, field: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.field = field
