"""Command-line access to an event store configured from the environment."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Mapping
from pathlib import Path

import httpx
from pydantic import JsonValue

from inoovum_eventstore.client import EventStore
from inoovum_eventstore.errors import CodecError, ConfigurationError, TransportError
from inoovum_eventstore.ndjson import iter_lines


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eventstore",
        description="Event store client (configured via EVENTSTORE_* variables)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("ping", help="Print the service ping response")
    subparsers.add_parser("audit", help="Print the service audit report")

    stream = subparsers.add_parser("stream", help="Print events stored under a subject")
    stream.add_argument("subject", help="Subject to stream")

    query = subparsers.add_parser("q", help="Run an ad-hoc query")
    query.add_argument("query", help="Query text")

    commit = subparsers.add_parser("commit", help="Commit events read from an NDJSON file")
    commit.add_argument("file", help="NDJSON file with subject/type/data objects, or - for stdin")

    return parser


def _read_events(source: str) -> list[JsonValue]:
    body = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    events: list[JsonValue] = []
    for outcome in iter_lines(body):
        if outcome.failure is not None:
            msg = f"line {outcome.line_number}: {outcome.failure.reason}"
            raise CodecError(msg, kind="invalid_field")
        events.append(outcome.value)
    return events


def _write_json_lines(values: list[JsonValue]) -> None:
    for value in values:
        sys.stdout.write(json.dumps(value) + "\n")


def _run(store: EventStore, args: argparse.Namespace) -> None:
    if args.command == "ping":
        sys.stdout.write(store.ping() + "\n")
    elif args.command == "audit":
        sys.stdout.write(store.audit() + "\n")
    elif args.command == "stream":
        events = store.stream_events(args.subject)
        _write_json_lines([event.model_dump(mode="json") for event in events])
    elif args.command == "q":
        _write_json_lines(store.q(args.query))
    elif args.command == "commit":
        store.commit_events(_read_events(args.file))  # type: ignore[arg-type]
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(
    argv: list[str] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    transport: httpx.BaseTransport | None = None,
) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        store = EventStore.from_env(environ, transport=transport)
    except ConfigurationError as exc:
        sys.stderr.write(f"configuration error: {exc}\n")
        return 2

    with store:
        try:
            _run(store, args)
        except (TransportError, CodecError, OSError) as exc:
            sys.stderr.write(f"error: {exc}\n")
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
