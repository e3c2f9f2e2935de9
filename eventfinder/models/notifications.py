"""Typed notifications exchanged between client components over the EventBus.

Each notification is a frozen pydantic model with a stable ``wire_name``
(the name the same notification had as a browser custom event).  The bus
dispatches by model class, so subscribers receive fully typed payloads.
"""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from eventfinder.models.event import EventRecord


class Notification(BaseModel):
    """Base class for bus payloads."""

    model_config = ConfigDict(frozen=True)

    wire_name: ClassVar[str] = "notification"


class LocationSelected(Notification):
    """A location was chosen (suggestion, submit, device or restore)."""

    wire_name: ClassVar[str] = "locationSelected"

    lat: float
    lon: float
    name: str
    radius: int


class RefreshEvents(Notification):
    """The radius changed for the already selected location."""

    wire_name: ClassVar[str] = "refreshEvents"

    lat: float
    lon: float
    name: str
    radius: int


class EventsDataLoaded(Notification):
    wire_name: ClassVar[str] = "eventsDataLoaded"

    events: tuple[EventRecord, ...] = Field(default_factory=tuple)


class HighlightEventMarker(Notification):
    """A card body was clicked; the map should focus that event's marker."""

    wire_name: ClassVar[str] = "highlightEventMarker"

    event_id: str


class HighlightEventCard(Notification):
    """A marker was clicked; the results list should highlight that card."""

    wire_name: ClassVar[str] = "highlightEventCard"

    event_id: str
