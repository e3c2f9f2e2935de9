"""Abstract base class for event-listing providers.

Implementations return normalized ``EventRecord`` lists for a point and a
radius, and single events by id for the detail page.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from eventfinder.models.event import EventQuery, EventRecord


# Concrete implementations: TicketmasterProvider (eventfinder/providers/event/),
# EventFinderAPIClient (eventfinder/client/api_client.py).
class IEventProvider(ABC):
    """Contract for "events near coordinates + radius" lookups."""

    @abstractmethod
    async def search_events(self, query: EventQuery) -> list[EventRecord]:
        """Return upcoming events around ``query``'s coordinates.

        Parameters
        ----------
        query:
            Coordinates and radius.  Implementations convert the radius to
            whatever unit their upstream API expects.

        Returns
        -------
        list[EventRecord]
            Events in provider order (soonest first); empty when none.

        Raises
        ------
        eventfinder.utils.errors.ProviderError
            If the provider is unreachable, unconfigured or answers with an
            error.
        """

    @abstractmethod
    async def get_event(self, event_id: str) -> EventRecord | None:
        """Return a single event, or ``None`` when the id is unknown."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"ticketmaster"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (e.g. has an API key)."""
