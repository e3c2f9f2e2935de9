"""Command-line event search.

Drives a full client session headlessly: geocodes the query, selects the
best (or ``--pick``-th) match, waits for the results and prints them.

Usage::

    python -m eventfinder.cli.search "Amsterdam"
    python -m eventfinder.cli.search "Amsterdam" --radius 25 --json
    python -m eventfinder.cli.search "Utrecht" --server http://localhost:8000

Without ``--server`` the session talks to Nominatim and Ticketmaster
directly (``TICKETMASTER_API_KEY`` must be set).  Logs go to stderr so that
``--json`` output on stdout stays machine-readable.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

import httpx

from eventfinder.client.api_client import EventFinderAPIClient
from eventfinder.client.session import ClientSession
from eventfinder.client.views import ResultsStatus
from eventfinder.config.loader import load_config
from eventfinder.config.settings import Settings
from eventfinder.providers.device.locators import StaticDeviceLocator
from eventfinder.providers.event.ticketmaster_provider import TicketmasterProvider
from eventfinder.providers.geocode.nominatim_provider import NominatimProvider
from eventfinder.providers.state.memory_state_store import MemoryStateStore
from eventfinder.rendering.html import format_start_date
from eventfinder.utils.logging import configure_logging


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _format_text_output(session: ClientSession) -> str:
    view = session.results.view
    location = session.state.location
    lines: list[str] = []
    sep = "=" * 60

    lines.append(sep)
    lines.append(f"  Events near {location.display_name if location else '?'}")
    lines.append(f"  Radius: {session.state.radius} km  |  Found: {view.count}")
    lines.append(sep)

    if view.message:
        lines.append(view.message)

    for card in view.cards:
        event = card.event
        lines.append("")
        lines.append(event.name)
        lines.append(f"  {format_start_date(event.start_date)}")
        if event.venue.name:
            lines.append(f"  {event.venue.name}  ({card.distance_label})")
        if event.url:
            lines.append(f"  {event.url}")

    return "\n".join(lines)


def _format_json_output(session: ClientSession) -> str:
    view = session.results.view
    location = session.state.location
    output = {
        "location": location.model_dump(mode="json") if location else None,
        "radius": session.state.radius,
        "status": view.status.value,
        "count": view.count,
        "message": view.message,
        "events": [
            {
                **card.event.model_dump(mode="json", by_alias=True),
                "distance": card.distance_label,
            }
            for card in view.cards
        ],
        "map": {
            "center": list(session.map.view.center),
            "zoom": session.map.view.zoom,
            "markers": len(session.map.view.event_marker_keys),
        },
    }
    return json.dumps(output, indent=2)


# ---------------------------------------------------------------------------
# Session assembly
# ---------------------------------------------------------------------------


def build_session(
    settings: Settings,
    http_client: httpx.AsyncClient,
    server: str | None = None,
) -> ClientSession:
    """Client session for one CLI run; nothing is persisted between runs."""
    if server:
        api = EventFinderAPIClient(http_client, base_url=server)
        geocoder, events_provider = api, api
    else:
        geocoder = NominatimProvider(http_client, settings)
        events_provider = TicketmasterProvider(http_client, settings)

    locator = StaticDeviceLocator.from_settings(settings)
    return ClientSession(
        geocoder=geocoder,
        events_provider=events_provider,
        store=MemoryStateStore(),
        locator=locator if locator.is_supported() else None,
        settings=settings,
        config=load_config(settings=settings),
    )


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    async with httpx.AsyncClient(
        timeout=settings.http_timeout,
        headers={"User-Agent": settings.http_user_agent},
    ) as http_client:
        session = build_session(settings, http_client, args.server)
        await session.start()

        suggestions = await session.selector.search_now(args.query)
        if session.selector.view.error:
            print(f"Error: {session.selector.view.error}", file=sys.stderr)
            return 1
        if not suggestions:
            print(f"No locations found for: {args.query}", file=sys.stderr)
            return 1
        if not 0 <= args.pick < len(suggestions):
            print(
                f"Error: --pick {args.pick} out of range ({len(suggestions)} matches)",
                file=sys.stderr,
            )
            return 1

        await session.selector.change_radius(args.radius)
        await session.selector.select(suggestions[args.pick])
        await session.settle()

    if args.json_output:
        print(_format_json_output(session))
    else:
        print(_format_text_output(session))
    return 1 if session.results.view.status is ResultsStatus.ERROR else 0


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eventfinder-search",
        description="Find upcoming events around a place.",
    )
    parser.add_argument("query", help="Place to search around, e.g. 'Amsterdam'.")
    parser.add_argument(
        "--radius",
        default=None,
        help="Search radius in km (clamped to the configured bounds).",
    )
    parser.add_argument(
        "--pick",
        type=int,
        default=0,
        help="Which geocode match to use (0 = best).",
    )
    parser.add_argument(
        "--server",
        default=None,
        help="Base URL of an eventfinder server to query instead of the providers.",
    )
    parser.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print JSON instead of a text report.",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    settings = Settings()

    if args.radius is None:
        args.radius = settings.radius_default

    # JSON mode implies quiet: log lines never mix into stdout.
    quiet = args.quiet or args.json_output
    configure_logging(
        log_level="WARNING" if quiet else settings.log_level,
        stream=sys.stderr,
    )
    return asyncio.run(_run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
