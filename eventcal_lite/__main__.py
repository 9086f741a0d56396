"""Command-line entry for eventcal_lite."""

from __future__ import annotations

import argparse
import sys
from typing import NoReturn

from . import run_server
from .core.exceptions import StorageUnavailableError


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for eventcal_lite CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="eventcal_lite",
        description="eventcal_lite - personal calendar events API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m eventcal_lite                          # Serve on default port (8080), in-memory store
  python -m eventcal_lite --port 3000              # Serve on port 3000
  python -m eventcal_lite --store events.json      # Persist events to a JSON file
        """,
    )

    parser.add_argument(
        "--config",
        metavar="PATH",
        help="YAML config file (default: ./eventcal_lite/config.yaml)",
    )
    parser.add_argument(
        "--port",
        type=int,
        metavar="PORT",
        help="Port number for the web server (default: 8080, or EVENTCAL_SERVER_PORT)",
    )
    parser.add_argument(
        "--store",
        metavar="PATH",
        help="JSON file backing the event store (default: in-memory)",
    )

    return parser


def main() -> NoReturn:
    """Run the eventcal_lite CLI."""
    parser = _create_parser()
    args = parser.parse_args()

    try:
        run_server(args)
    except ValueError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(2)
    except StorageUnavailableError as exc:
        print(f"Event store unavailable: {exc}", file=sys.stderr)
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
