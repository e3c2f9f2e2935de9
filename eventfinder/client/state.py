"""The single explicit application state of a client session.

``AppState`` holds the current location, the search radius and the current
event set.  Writers are restricted by convention: the location selector sets
the location and radius, the results renderer replaces the event set;
everything else only reads.

The location is persisted under ``savedLocation`` through an
``IStateStore`` so the next session can restore it.
"""

from __future__ import annotations

from typing import Iterable

import structlog
from pydantic import ValidationError

from eventfinder.interfaces.state_store import IStateStore
from eventfinder.models.event import DistanceUnit, EventQuery, EventRecord
from eventfinder.models.location import Location
from eventfinder.utils.geo import (
    RADIUS_DEFAULT_KM,
    RADIUS_MAX_KM,
    RADIUS_MIN_KM,
    clamp_radius,
)
from eventfinder.utils.logging import get_logger

SAVED_LOCATION_KEY = "savedLocation"


class AppState:
    """Current location, radius and event set, with update methods.

    Parameters
    ----------
    store:
        Persistence for the last selected location.
    radius_min, radius_max, radius_default:
        Radius bounds in kilometres.
    """

    def __init__(
        self,
        store: IStateStore,
        radius_min: int = RADIUS_MIN_KM,
        radius_max: int = RADIUS_MAX_KM,
        radius_default: int = RADIUS_DEFAULT_KM,
    ) -> None:
        self._store = store
        self._radius_min = radius_min
        self._radius_max = radius_max
        self._radius_default = clamp_radius(radius_default, radius_min, radius_max, radius_min)
        self._location: Location | None = None
        self._radius = self._radius_default
        self._events: tuple[EventRecord, ...] = ()
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # -- Read access -----------------------------------------------------------

    @property
    def location(self) -> Location | None:
        return self._location

    @property
    def radius(self) -> int:
        return self._radius

    @property
    def events(self) -> tuple[EventRecord, ...]:
        return self._events

    def find_event(self, event_id: str) -> EventRecord | None:
        for event in self._events:
            if event.id == event_id:
                return event
        return None

    def query(self) -> EventQuery | None:
        """The query the current location and radius determine, if any."""
        if self._location is None:
            return None
        return EventQuery(
            latitude=self._location.latitude,
            longitude=self._location.longitude,
            radius=self._radius,
            unit=DistanceUnit.KM,
        )

    # -- Updates ---------------------------------------------------------------

    def set_location(self, location: Location) -> None:
        """Replace the current location (last write wins) and persist it."""
        self._location = location
        self._store.set(SAVED_LOCATION_KEY, location.model_dump())
        self._logger.info(
            "location_set",
            lat=location.latitude,
            lon=location.longitude,
            name=location.display_name,
        )

    def set_radius(self, value: object) -> int:
        """Clamp and store a new radius; returns the value actually stored."""
        self._radius = clamp_radius(
            value, self._radius_min, self._radius_max, self._radius_default
        )
        return self._radius

    def replace_events(self, events: Iterable[EventRecord]) -> None:
        """Swap in a whole new event set; never patched in place."""
        self._events = tuple(events)

    def restore_location(self) -> Location | None:
        """Load the persisted location into state, or return ``None``.

        A stored value that no longer decodes into a ``Location`` is logged
        and deleted.
        """
        try:
            raw = self._store.get(SAVED_LOCATION_KEY)
        except ValueError as exc:
            self._logger.warning("saved_location_corrupt", error=str(exc)[:200])
            self._store.delete(SAVED_LOCATION_KEY)
            return None
        if raw is None:
            return None
        try:
            location = Location.model_validate(raw)
        except ValidationError as exc:
            self._logger.warning("saved_location_invalid", error=str(exc)[:200])
            self._store.delete(SAVED_LOCATION_KEY)
            return None
        self._location = location
        self._logger.info("location_restored", name=location.display_name)
        return location
