"""Tolerant decoding of newline-delimited JSON bodies."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from pydantic import JsonValue

from inoovum_eventstore.errors import CodecError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LineFailure:
    """One NDJSON line that was discarded."""

    line_number: int
    raw: str
    reason: str


@dataclass(frozen=True, slots=True)
class LineOutcome:
    """Result of decoding one non-blank line: a value, or a failure."""

    line_number: int
    raw: str
    value: JsonValue = None
    failure: LineFailure | None = None


@dataclass
class DecodeReport[T]:
    """Ordered decoded items plus the lines that were skipped."""

    items: list[T] = field(default_factory=list)
    failures: list[LineFailure] = field(default_factory=list)

    @property
    def failure_count(self) -> int:
        return len(self.failures)


def _reject_constant(token: str) -> float:
    msg = f"Non-standard JSON constant: {token}"
    raise ValueError(msg)


def _decode_line(line_number: int, line: str) -> LineOutcome:
    try:
        value = json.loads(line, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        return LineOutcome(line_number, line, failure=LineFailure(line_number, line, str(exc)))
    return LineOutcome(line_number, line, value=value)


def iter_lines(body: str) -> Iterator[LineOutcome]:
    """Yield one outcome per non-blank line of ``body``, in order."""
    if not body.strip():
        return
    for index, line in enumerate(body.split("\n"), start=1):
        if not line.strip():
            continue
        yield _decode_line(index, line)


def _transform_outcome[T](
    outcome: LineOutcome,
    transform: Callable[[JsonValue], T],
) -> T | LineFailure:
    try:
        return transform(outcome.value)
    except CodecError as exc:
        return LineFailure(outcome.line_number, outcome.raw, str(exc))


def decode_ndjson[T](
    body: str,
    *,
    transform: Callable[[JsonValue], T] | None = None,
    log: logging.Logger | None = None,
) -> DecodeReport[T]:
    """Decode ``body`` into a report, logging and skipping lines that fail.

    ``transform`` maps each decoded value to its final shape; a ``CodecError``
    from it discards the line the same way a JSON syntax error does.
    """
    sink = log or logger
    report: DecodeReport[T] = DecodeReport()
    for outcome in iter_lines(body):
        result: object
        if outcome.failure is not None:
            result = outcome.failure
        elif transform is None:
            result = outcome.value
        else:
            result = _transform_outcome(outcome, transform)

        if isinstance(result, LineFailure):
            sink.warning(
                "Error parsing line %d: %s; problem with JSON: %s",
                result.line_number,
                result.reason,
                result.raw,
            )
            report.failures.append(result)
        else:
            report.items.append(result)  # type: ignore[arg-type]
    return report
