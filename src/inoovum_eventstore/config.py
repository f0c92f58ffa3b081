"""Client configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from inoovum_eventstore.errors import ConfigurationError

ENV_API_URL = "EVENTSTORE_API_URL"
ENV_API_VERSION = "EVENTSTORE_API_VERSION"
ENV_AUTH_TOKEN = "EVENTSTORE_AUTH_TOKEN"
ENV_TIMEOUT_SECONDS = "EVENTSTORE_TIMEOUT_SECONDS"

DEFAULT_TIMEOUT_SECONDS = 10.0
USER_AGENT = "inoovum-eventstore-sdk-python"


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Immutable connection settings shared by every request of one client."""

    api_url: str
    api_version: str
    auth_token: str
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        missing = [
            name
            for name in ("api_url", "api_version", "auth_token")
            if not isinstance(getattr(self, name), str) or getattr(self, name) == ""
        ]
        if missing:
            msg = f"Missing required variables: {', '.join(missing)}"
            raise ConfigurationError(msg)
        if self.timeout_seconds <= 0:
            msg = f"timeout_seconds must be positive, got {self.timeout_seconds}"
            raise ConfigurationError(msg)

    @property
    def base_url(self) -> str:
        return f"{self.api_url.rstrip('/')}/api/{self.api_version}"

    def endpoint_url(self, endpoint: str) -> str:
        """Absolute URL for one API endpoint, e.g. ``stream`` or ``status/ping``."""
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    @property
    def default_headers(self) -> dict[str, str]:
        return {
            "User-Agent": USER_AGENT,
            "Authorization": f"Bearer {self.auth_token}",
        }

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ClientConfig:
        """Build a configuration from ``EVENTSTORE_*`` environment variables."""
        source = os.environ if environ is None else environ
        raw_timeout = source.get(ENV_TIMEOUT_SECONDS, "").strip()
        if raw_timeout:
            try:
                timeout_seconds = float(raw_timeout)
            except ValueError as exc:
                msg = f"{ENV_TIMEOUT_SECONDS} must be a number, got {raw_timeout!r}"
                raise ConfigurationError(msg) from exc
        else:
            timeout_seconds = DEFAULT_TIMEOUT_SECONDS
        return cls(
            api_url=source.get(ENV_API_URL, ""),
            api_version=source.get(ENV_API_VERSION, ""),
            auth_token=source.get(ENV_AUTH_TOKEN, ""),
            timeout_seconds=timeout_seconds,
        )

    def __repr__(self) -> str:
        return (
            f"ClientConfig(api_url={self.api_url!r}, api_version={self.api_version!r}, "
            f"auth_token='***', timeout_seconds={self.timeout_seconds!r})"
        )
