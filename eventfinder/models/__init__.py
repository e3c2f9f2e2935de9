"""eventfinder domain models, re-exported from one place.

Submodules by concern:
    - location.py       -- selected location and geocode suggestions
    - event.py          -- event records, venues, images, event queries
    - map.py            -- map markers
    - notifications.py  -- typed payloads for the client event bus
"""

from __future__ import annotations

from eventfinder.models.event import (
    DistanceUnit,
    EventImage,
    EventQuery,
    EventRecord,
    PriceRange,
    TicketStatus,
    Venue,
)
from eventfinder.models.location import GeocodeSuggestion, Location
from eventfinder.models.map import CENTER_MARKER_KEY, Marker, MarkerKind
from eventfinder.models.notifications import (
    EventsDataLoaded,
    HighlightEventCard,
    HighlightEventMarker,
    LocationSelected,
    Notification,
    RefreshEvents,
)

__all__ = [
    "CENTER_MARKER_KEY",
    "DistanceUnit",
    "EventImage",
    "EventQuery",
    "EventRecord",
    "EventsDataLoaded",
    "GeocodeSuggestion",
    "HighlightEventCard",
    "HighlightEventMarker",
    "Location",
    "LocationSelected",
    "Marker",
    "MarkerKind",
    "Notification",
    "PriceRange",
    "RefreshEvents",
    "TicketStatus",
    "Venue",
]
