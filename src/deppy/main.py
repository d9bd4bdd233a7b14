#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import asyncio
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from deppy.app import exclude, include, run_update_once, serve, status
from deppy.common import configure_logging
from deppy.config import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from deppy.domain.model import ExclusionLists


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="deppy", description="Keep a repository's dependency versions up to date"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("run", help="Run a single update now and land it as a pull request")
    commands.add_parser("serve", help="Run updates on a recurring schedule")
    commands.add_parser("status", help="Show exclusions and the stored integration branch head")

    for name, verb in (("exclude", "Exclude"), ("include", "Stop excluding")):
        command = commands.add_parser(name, help=f"{verb} dependency versions")
        command.add_argument(
            "dependencies",
            nargs="+",
            help="name:version tokens, split at the last colon (e.g. left-pad:1.4.0)",
        )
        command.add_argument(
            "--pattern",
            action="store_true",
            help="Treat name and version as regular expressions",
        )
    return parser.parse_args(list(argv))


def _print_exclusions(exclusions: ExclusionLists) -> None:
    print("Excluded dependencies:")
    for entry in exclusions.exact:
        print(f"  {entry}")
    if not exclusions.exact:
        print("  (none)")
    print("Excluded patterns:")
    for pattern in exclusions.patterns:
        print(f"  {pattern}")
    if not exclusions.patterns:
        print("  (none)")


def _dispatch(args: argparse.Namespace) -> None:
    if args.command == "run":
        outcome = run_update_once()
        print(f"Update finished: {outcome.status}")
        if outcome.pull_request_number is not None:
            print(f"Pull request #{outcome.pull_request_number} at {outcome.commit_id}")
    elif args.command == "serve":
        asyncio.run(serve())
    elif args.command in {"exclude", "include"}:
        action = exclude if args.command == "exclude" else include
        _print_exclusions(action(" ".join(args.dependencies), patterns=args.pattern))
    elif args.command == "status":
        report = status()
        _print_exclusions(report.exclusions)
        print(f"Integration branch head: {report.branch_head or '(none)'}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args = _parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging()

    try:
        _dispatch(parsed_args)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(2)
    except Exception as e:  # noqa: BLE001
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


def entrypoint() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    entrypoint()
