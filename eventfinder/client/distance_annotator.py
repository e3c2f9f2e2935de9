"""Distance labels for result cards.

After every render the annotator asks the device locator for a position,
once, with a bounded timeout, and labels each card with the great-circle
distance from the user to the venue.  Failure is never fatal: cards fall
back to "Location unavailable" (no device position) or "Location unknown"
(no venue coordinates).
"""

from __future__ import annotations

from typing import Sequence

import structlog

from eventfinder.client.views import EventCard
from eventfinder.interfaces.device_locator import IDeviceLocator
from eventfinder.models.event import EventRecord
from eventfinder.providers.device.locators import locate_with_timeout
from eventfinder.utils.errors import GeolocationError
from eventfinder.utils.geo import format_distance, haversine_km
from eventfinder.utils.logging import get_logger

LOCATION_UNAVAILABLE = "Location unavailable"
LOCATION_UNKNOWN = "Location unknown"


class DistanceAnnotator:
    """Labels cards with "N m away" / "N.N km away" / "N km away".

    Parameters
    ----------
    locator:
        Device locator; ``None`` means geolocation is unsupported.
    timeout:
        Seconds to wait for a position.
    """

    def __init__(self, locator: IDeviceLocator | None, timeout: float = 5.0) -> None:
        self._locator = locator
        self._timeout = timeout
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @staticmethod
    def label_for(event: EventRecord, position: tuple[float, float] | None) -> str:
        if not event.has_coordinates:
            return LOCATION_UNKNOWN
        if position is None:
            return LOCATION_UNAVAILABLE
        distance = haversine_km(
            position[0], position[1], event.venue.latitude, event.venue.longitude
        )
        return format_distance(distance)

    async def current_position(self) -> tuple[float, float] | None:
        """One bounded device lookup; ``None`` on any geolocation failure."""
        if self._locator is None:
            return None
        try:
            return await locate_with_timeout(self._locator, self._timeout)
        except GeolocationError as exc:
            self._logger.info("device_location_unavailable", code=exc.code.value)
            return None

    async def annotate(self, cards: Sequence[EventCard]) -> None:
        """Set ``distance_label`` on every card."""
        if not cards:
            return
        position = await self.current_position()
        for card in cards:
            card.distance_label = self.label_for(card.event, position)
        self._logger.debug(
            "distances_annotated", cards=len(cards), located=position is not None
        )
