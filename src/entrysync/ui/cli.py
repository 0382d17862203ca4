from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, cast

from dotenv import load_dotenv
from pydantic import ValidationError

from entrysync.app import initialize_database, receive_batch
from entrysync.config import ConfigurationError, configure_logging
from entrysync.domain.errors import FeedNotFoundError

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile feed refresh batches")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every item outcome",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    receive = subparsers.add_parser("receive", help="Reconcile batches from JSON files")
    receive.add_argument(
        "paths",
        nargs="+",
        help="Batch files (.json holds one batch or a list, .jsonl one per line; - for stdin)",
    )
    receive.add_argument(
        "--database-uri",
        type=str,
        help="SQLAlchemy database URI (defaults to DATABASE_URI or the data dir)",
    )

    init_db = subparsers.add_parser("init-db", help="Create the database schema")
    init_db.add_argument(
        "--database-uri",
        type=str,
        help="SQLAlchemy database URI (defaults to DATABASE_URI or the data dir)",
    )

    return parser.parse_args(list(argv))


def _documents(text: str, *, lines: bool) -> Iterator[object]:
    if lines:
        for line in text.splitlines():
            if line.strip():
                yield json.loads(line)
        return
    document = json.loads(text)
    if isinstance(document, list):
        yield from cast("list[object]", document)
    else:
        yield document


def _load_batches(paths: Sequence[str]) -> Iterator[Mapping[str, object]]:
    for name in paths:
        if name == "-":
            text, lines = sys.stdin.read(), False
        else:
            path = Path(name)
            text, lines = path.read_text(encoding="utf-8"), path.suffix == ".jsonl"
        try:
            documents = list(_documents(text, lines=lines))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {name}: {exc}") from exc
        for document in documents:
            if not isinstance(document, dict):
                raise ValueError(f"Batch in {name} is not an object")
            yield cast("Mapping[str, object]", document)


def _receive(paths: Sequence[str]) -> int:
    failed = 0
    for payload in _load_batches(paths):
        try:
            result = receive_batch(payload)
        except (ValidationError, FeedNotFoundError):
            log.exception("Rejected batch")
            failed += 1
            continue
        if result.failures:
            log.warning(
                "Feed %s: %s item(s) failed",
                result.feed_id,
                len(result.failures),
            )
    return failed


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        initialize_database(database_uri=parsed_args.database_uri)
        if parsed_args.command == "init-db":
            log.info("Database schema ready")
        elif parsed_args.command == "receive":
            failed = _receive(parsed_args.paths)
            if failed:
                sys.exit(1)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except (ValueError, ConfigurationError):
        log.exception("Invalid input")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error while receiving batches")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
