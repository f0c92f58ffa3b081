"""Mapping between wire JSON and event models."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import JsonValue, ValidationError

from inoovum_eventstore.errors import CodecError
from inoovum_eventstore.models.events import CloudEvent, JSONObject, OutboundEvent

INBOUND_FIELDS = ("id", "source", "type", "data", "subject", "time")
OUTBOUND_FIELDS = ("subject", "type", "data")

type OutboundLike = OutboundEvent | Mapping[str, Any]


def decode_event(value: JsonValue) -> CloudEvent:
    """Build a ``CloudEvent`` from one decoded NDJSON record."""
    if not isinstance(value, dict):
        msg = f"Expected a JSON object, got {type(value).__name__}"
        raise CodecError(msg, kind="not_an_object")

    for name in INBOUND_FIELDS:
        if name not in value:
            msg = f"Missing required event field: {name}"
            raise CodecError(msg, kind="missing_field", field=name)

    try:
        return CloudEvent.model_validate({name: value[name] for name in INBOUND_FIELDS})
    except ValidationError as exc:
        raise _codec_error(exc) from exc


def encode_outbound_event(event: OutboundLike) -> JSONObject:
    """Reduce an event to the ``subject``/``type``/``data`` shape accepted by ``commit``."""
    if isinstance(event, OutboundEvent):
        return event.model_dump()

    if not isinstance(event, Mapping):
        msg = f"Expected an OutboundEvent or mapping, got {type(event).__name__}"
        raise CodecError(msg, kind="not_an_object")

    for name in OUTBOUND_FIELDS:
        if name not in event:
            msg = f"Missing required event field: {name}"
            raise CodecError(msg, kind="missing_field", field=name)

    try:
        outbound = OutboundEvent.model_validate({name: event[name] for name in OUTBOUND_FIELDS})
    except ValidationError as exc:
        raise _codec_error(exc) from exc
    return outbound.model_dump()


def encode_commit_body(events: Iterable[OutboundLike]) -> JSONObject:
    return {"events": [encode_outbound_event(event) for event in events]}


def _codec_error(exc: ValidationError) -> CodecError:
    first = exc.errors()[0]
    location = first.get("loc") or ("",)
    field = str(location[0])
    detail = first.get("msg", str(exc))
    if field == "time":
        return CodecError(
            f"Malformed event timestamp: {detail}",
            kind="malformed_timestamp",
            field=field,
        )
    return CodecError(
        f"Invalid event field {field}: {detail}",
        kind="invalid_field",
        field=field,
    )
