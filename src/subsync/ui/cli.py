from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from subsync.app import init_database, replay_stripe_events
from subsync.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile subscriptions with Stripe webhooks")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log debug output, including ignored events",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_db = subparsers.add_parser("init-db", help="Create the database tables")
    init_db.add_argument(
        "--database-uri",
        type=str,
        help="SQLAlchemy database URI (defaults to DATABASE_URI or the data directory)",
    )

    replay = subparsers.add_parser("replay", help="Reconcile Stripe events from a JSONL file")
    replay.add_argument(
        "file",
        type=Path,
        help="File with one Stripe event JSON object per line",
    )
    replay.add_argument(
        "--database-uri",
        type=str,
        help="SQLAlchemy database URI (defaults to DATABASE_URI or the data directory)",
    )

    return parser.parse_args(list(argv))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    if parsed_args.command == "replay" and not parsed_args.file.is_file():
        log.error("Replay file not found: %s", parsed_args.file)
        sys.exit(2)

    try:
        init_database(parsed_args.database_uri)
        if parsed_args.command == "replay":
            with parsed_args.file.open(encoding="utf-8") as handle:
                result = replay_stripe_events(handle)
            for outcome, count in sorted(result.outcomes.items()):
                log.info("%s: %s", outcome, count)
            if result.invalid:
                log.warning("invalid: %s", result.invalid)
        elif parsed_args.command != "init-db":
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
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
