#!/usr/bin/env python3
"""
CLI tool for inspecting events and venues without the dashboard.

Usage:
    python manage_events.py events --search gala
    python manage_events.py metrics
    python manage_events.py venues --page 2 --page-size 25
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from eventdesk.core.container import ServiceContainer
from eventdesk.core.env import load_environment
from eventdesk.core.logging import configure_logging
from eventdesk.core.settings import Settings
from eventdesk.services.events import summarize
from eventdesk.services.upstream import EventDeskError


def list_events(container: ServiceContainer, search: str, page: int, page_size: int):
    """Print one page of enriched events."""
    result = asyncio.run(
        container.event_aggregator.list_events(
            page_number=page,
            page_size=page_size,
            search=search,
        )
    )
    print(json.dumps(result.model_dump(mode="json"), indent=2))


def show_metrics(container: ServiceContainer):
    """Print dashboard totals over every event."""
    events = asyncio.run(container.event_aggregator.fetch_events())
    print(json.dumps(summarize(events).model_dump(), indent=2))


def list_venues(container: ServiceContainer, search: str, page: int, page_size: int):
    """Print one page of venues."""
    result = container.ticketing_client.list_venues(
        page_number=page,
        page_size=page_size,
        search=search,
    )
    print(json.dumps(result, indent=2))


def main():
    parser = argparse.ArgumentParser(
        description="Inspect EventDesk events and venues",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # First page of enriched events
  python manage_events.py events

  # Events whose name, id, status or venue mention "gala"
  python manage_events.py events --search gala

  # Totals shown on the dashboard cards
  python manage_events.py metrics
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    for name, help_text in (("events", "List enriched events"), ("venues", "List venues")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--search", default=None, help="Filter term")
        sub.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
        sub.add_argument("--page-size", type=int, default=10, help="Page size (default: 10)")

    subparsers.add_parser("metrics", help="Show event totals")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    load_environment()
    configure_logging()
    container = ServiceContainer(Settings())

    try:
        if args.command == "events":
            list_events(container, args.search, args.page, args.page_size)
        elif args.command == "metrics":
            show_metrics(container)
        elif args.command == "venues":
            list_venues(container, args.search, args.page, args.page_size)
    except EventDeskError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
