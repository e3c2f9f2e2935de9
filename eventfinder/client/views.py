"""View models: what each client component currently shows.

These are the headless equivalents of the page's DOM regions.  They are
plain mutable dataclasses, owned and updated by one component each, and
read by tests, the CLI and anything else that renders them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from eventfinder.models.event import EventRecord
from eventfinder.models.location import GeocodeSuggestion
from eventfinder.models.map import CENTER_MARKER_KEY, Marker, MarkerKind
from eventfinder.rendering.html import CALCULATING_LABEL


class SelectorStatus(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    READY = "ready"
    LOCATING = "locating"
    ERROR = "error"


class ResultsStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    EMPTY = "empty"
    ERROR = "error"


class CardTarget(str, Enum):
    """Which part of a card received a click."""

    BODY = "body"
    LINK = "link"
    BUTTON = "button"


@dataclass
class SelectorView:
    """Search box, suggestion list, radius control and error line."""

    query: str = ""
    suggestions: list[GeocodeSuggestion] = field(default_factory=list)
    status: SelectorStatus = SelectorStatus.IDLE
    error: str | None = None
    radius: int = 40


@dataclass
class EventCard:
    """One result card."""

    event: EventRecord
    html: str = ""
    expanded: bool = False
    highlighted: bool = False
    pulsing: bool = False
    distance_label: str = CALCULATING_LABEL

    @property
    def event_id(self) -> str:
        return self.event.id


@dataclass
class ResultsView:
    """The results list, its count and its status line."""

    status: ResultsStatus = ResultsStatus.IDLE
    cards: list[EventCard] = field(default_factory=list)
    count: int = 0
    message: str | None = None
    scroll_target: str | None = None

    def card(self, event_id: str) -> EventCard | None:
        for card in self.cards:
            if card.event_id == event_id:
                return card
        return None

    @property
    def expanded_ids(self) -> list[str]:
        return [c.event_id for c in self.cards if c.expanded]


@dataclass
class MapView:
    """Viewport plus marker set.  ``markers`` is keyed by event id and ``center``."""

    center: tuple[float, float]
    zoom: int
    markers: dict[str, Marker] = field(default_factory=dict)
    open_popup: str | None = None
    pulsing: set[str] = field(default_factory=set)

    @property
    def center_marker(self) -> Marker | None:
        return self.markers.get(CENTER_MARKER_KEY)

    @property
    def event_marker_keys(self) -> set[str]:
        return {k for k, m in self.markers.items() if m.kind is MarkerKind.EVENT}
