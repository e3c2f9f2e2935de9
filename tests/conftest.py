"""Shared pytest fixtures for the eventfinder test suite."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any

import pytest
import structlog

from eventfinder.config.settings import Settings
from eventfinder.interfaces.device_locator import IDeviceLocator
from eventfinder.interfaces.event_provider import IEventProvider
from eventfinder.interfaces.geocode_provider import IGeocodeProvider
from eventfinder.models.event import EventQuery, EventRecord, TicketStatus, Venue
from eventfinder.models.location import GeocodeSuggestion, Location
from eventfinder.models.notifications import Notification
from eventfinder.providers.state.memory_state_store import MemoryStateStore

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _structlog_to_stderr() -> None:
    """Route structlog to stderr so log lines never mix into captured stdout."""
    structlog.configure(
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_settings(**overrides: Any) -> Settings:
    """Settings with test defaults: a Ticketmaster key and no debounce delay."""
    defaults: dict[str, Any] = {
        "ticketmaster_api_key": "test-key",
        "input_debounce_ms": 0,
        "query_debounce_ms": 0,
        "device_latitude": None,
        "device_longitude": None,
    }
    defaults.update(overrides)
    return Settings(**defaults)


def make_event(
    event_id: str = "evt-1",
    name: str = "Test Concert",
    latitude: float | None = 52.3731,
    longitude: float | None = 4.8922,
    venue_name: str = "Paradiso",
    **fields: Any,
) -> EventRecord:
    return EventRecord(
        id=event_id,
        name=name,
        venue=Venue(name=venue_name, latitude=latitude, longitude=longitude),
        **fields,
    )


def ticketmaster_item(
    event_id: str = "Z698xZ2qZa7Fk",
    name: str = "Jazz Night",
    latitude: str | None = "52.3622",
    longitude: str | None = "4.8835",
    status: str = "onsale",
) -> dict[str, Any]:
    """One raw Discovery API event, shaped like the real payload."""
    venue: dict[str, Any] = {
        "name": "Paradiso",
        "address": {"line1": "Weteringschans 6-8"},
        "city": {"name": "Amsterdam"},
    }
    if latitude is not None and longitude is not None:
        venue["location"] = {"latitude": latitude, "longitude": longitude}
    return {
        "id": event_id,
        "name": name,
        "url": f"https://www.ticketmaster.nl/event/{event_id}",
        "images": [
            {"url": "https://img.example/small.jpg", "width": 305, "ratio": "4_3"},
            {"url": "https://img.example/wide.jpg", "width": 1024, "ratio": "16_9"},
        ],
        "dates": {
            "start": {"localDate": "2025-05-02", "dateTime": "2025-05-02T18:00:00Z"},
            "status": {"code": status},
        },
        "classifications": [
            {"genre": {"name": "Jazz"}, "subGenre": {"name": "Undefined"}}
        ],
        "priceRanges": [{"min": 25.0, "max": 45.0, "currency": "EUR"}],
        "_embedded": {
            "venues": [venue],
            "attractions": [{"name": "The Quartet"}, {"name": "Guest Trio"}],
        },
    }


AMSTERDAM = GeocodeSuggestion(
    display_name="Amsterdam, Noord-Holland, Nederland",
    lat=52.3730796,
    lon=4.8924534,
    place_id="250016",
)
UTRECHT = GeocodeSuggestion(
    display_name="Utrecht, Nederland",
    lat=52.0907006,
    lon=5.1215634,
    place_id="249942",
)


# ---------------------------------------------------------------------------
# Mock providers
# ---------------------------------------------------------------------------


class MockGeocoder(IGeocodeProvider):
    """In-memory geocoder that records queries.

    ``results`` maps a query to its suggestions; unknown queries get
    ``default``.  ``delays`` maps a query to seconds slept before answering.
    """

    def __init__(
        self,
        results: dict[str, list[GeocodeSuggestion]] | None = None,
        default: list[GeocodeSuggestion] | None = None,
        delays: dict[str, float] | None = None,
        error: Exception | None = None,
        reverse_location: Location | None = None,
    ) -> None:
        self.results = results or {}
        self.default = default if default is not None else [AMSTERDAM]
        self.delays = delays or {}
        self.error = error
        self.reverse_location = reverse_location
        self.queries: list[str] = []
        self.reverse_calls: list[tuple[float, float]] = []

    async def search(self, query: str, limit: int = 10) -> list[GeocodeSuggestion]:
        self.queries.append(query)
        delay = self.delays.get(query, 0.0)
        if delay:
            await asyncio.sleep(delay)
        if self.error is not None:
            raise self.error
        return list(self.results.get(query, self.default))[:limit]

    async def reverse(self, latitude: float, longitude: float) -> Location:
        self.reverse_calls.append((latitude, longitude))
        if self.error is not None:
            raise self.error
        return self.reverse_location or Location.from_coordinates(latitude, longitude)

    def get_provider_name(self) -> str:
        return "mock_geocoder"

    def is_available(self) -> bool:
        return True


class MockEventsProvider(IEventProvider):
    """In-memory events source that records every query.

    ``responses`` scripts successive calls as ``(delay, events_or_exception)``
    pairs; once exhausted, calls answer with ``events`` (or raise ``error``).
    """

    def __init__(
        self,
        events: list[EventRecord] | None = None,
        error: Exception | None = None,
        responses: list[tuple[float, Any]] | None = None,
    ) -> None:
        self.events = list(events or [])
        self.error = error
        self.responses = list(responses or [])
        self.queries: list[EventQuery] = []

    async def search_events(self, query: EventQuery) -> list[EventRecord]:
        self.queries.append(query)
        if self.responses:
            delay, outcome = self.responses.pop(0)
            if delay:
                await asyncio.sleep(delay)
            if isinstance(outcome, Exception):
                raise outcome
            return list(outcome)
        if self.error is not None:
            raise self.error
        return list(self.events)

    async def get_event(self, event_id: str) -> EventRecord | None:
        if self.error is not None:
            raise self.error
        for event in self.events:
            if event.id == event_id:
                return event
        return None

    def get_provider_name(self) -> str:
        return "mock_events"

    def is_available(self) -> bool:
        return True


class MockDeviceLocator(IDeviceLocator):
    """Device locator returning a fixed position after an optional delay."""

    def __init__(
        self,
        position: tuple[float, float] | None = (52.3676, 4.9041),
        delay: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        self.position = position
        self.delay = delay
        self.error = error
        self.calls = 0

    async def locate(self) -> tuple[float, float]:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.position

    def is_supported(self) -> bool:
        return self.position is not None


class Recorder:
    """Bus handler that keeps every notification it receives."""

    def __init__(self) -> None:
        self.received: list[Notification] = []

    def __call__(self, notification: Notification) -> None:
        self.received.append(notification)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def memory_store() -> MemoryStateStore:
    return MemoryStateStore()


@pytest.fixture
def sample_events() -> list[EventRecord]:
    """Three events around central Amsterdam; the last has no venue coordinates."""
    return [
        make_event(
            "evt-1",
            "Jazz Night",
            52.3622,
            4.8835,
            "Paradiso",
            ticket_status=TicketStatus.ONSALE,
            url="https://tickets.example/evt-1",
            start_date="2025-05-02T18:00:00Z",
        ),
        make_event("evt-2", "Indie Showcase", 52.3745, 4.8979, "Melkweg"),
        make_event("evt-3", "Secret Gig", None, None, "TBA"),
    ]


@pytest.fixture
def mock_geocoder() -> MockGeocoder:
    return MockGeocoder(results={"Amsterdam": [AMSTERDAM], "Utrecht": [UTRECHT]})


@pytest.fixture
def mock_events_provider(sample_events: list[EventRecord]) -> MockEventsProvider:
    return MockEventsProvider(events=sample_events)
