"""Event models exchanged with the event store."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, JsonValue, field_validator

type JSONObject = dict[str, JsonValue]

JSON_CONTENT_TYPE = "application/json"


class CloudEvent(BaseModel):
    """Stored event as returned by the ``stream`` endpoint."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    source: str
    type: str
    data: JsonValue
    subject: str
    time: datetime
    datacontenttype: Literal["application/json"] = JSON_CONTENT_TYPE
    specversion: Literal["1.0"] = "1.0"

    @field_validator("time")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class OutboundEvent(BaseModel):
    """Event to be committed; id and time are assigned by the server."""

    model_config = ConfigDict(extra="ignore")

    subject: str
    type: str
    data: JsonValue

    @field_validator("data")
    @classmethod
    def _json_compliant(cls, value: JsonValue) -> JsonValue:
        try:
            json.dumps(value, allow_nan=False)
        except (ValueError, RecursionError) as exc:
            msg = f"data is not JSON serializable: {exc}"
            raise ValueError(msg) from exc
        return value
