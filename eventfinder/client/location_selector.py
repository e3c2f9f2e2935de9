"""Location selector: search box, suggestions, device location and radius.

Typing schedules a geocode lookup after a quiet period; shorter than two
characters clears the list instead.  Choosing a suggestion, submitting text
that matches one, using the device position or restoring the saved
location all end the same way: the location is written to ``AppState``
(and persisted) and ``LocationSelected`` is published.

Changing the radius publishes ``RefreshEvents`` when a location is set.
"""

from __future__ import annotations

import structlog

from eventfinder.client.bus import EventBus
from eventfinder.client.state import AppState
from eventfinder.client.views import SelectorStatus, SelectorView
from eventfinder.interfaces.device_locator import IDeviceLocator
from eventfinder.interfaces.geocode_provider import IGeocodeProvider
from eventfinder.models.location import GeocodeSuggestion, Location
from eventfinder.models.notifications import LocationSelected, RefreshEvents
from eventfinder.providers.device.locators import locate_with_timeout
from eventfinder.utils.concurrency import Debouncer, RequestSequencer
from eventfinder.utils.errors import (
    GeolocationError,
    GeolocationErrorCode,
    InputValidationError,
    ProviderError,
)
from eventfinder.utils.logging import get_logger

MIN_QUERY_LENGTH = 2
NO_MATCH_MESSAGE = "Please choose a location from the suggestions."


class LocationSelector:
    """Drives a ``SelectorView`` from user input.

    Parameters
    ----------
    bus:
        Where ``LocationSelected`` / ``RefreshEvents`` are published.
    state:
        Receives the selected location and radius.
    geocoder:
        Forward and reverse geocode lookups.
    locator:
        Device locator for "use my location"; ``None`` when unsupported.
    suggestion_limit:
        Maximum suggestions shown.
    input_debounce:
        Quiet period in seconds before a lookup runs.
    geolocation_timeout:
        Seconds to wait for a device position.
    """

    def __init__(
        self,
        bus: EventBus,
        state: AppState,
        geocoder: IGeocodeProvider,
        locator: IDeviceLocator | None = None,
        suggestion_limit: int = 10,
        input_debounce: float = 0.5,
        geolocation_timeout: float = 10.0,
    ) -> None:
        self._bus = bus
        self._state = state
        self._geocoder = geocoder
        self._locator = locator
        self._limit = suggestion_limit
        self._geolocation_timeout = geolocation_timeout
        self._sequencer = RequestSequencer()
        self._debouncer = Debouncer(input_debounce, self.search_now, name="location_input")
        self.view = SelectorView(radius=state.radius)
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # -- Text input ------------------------------------------------------------

    def input_text(self, text: str) -> None:
        """Record a keystroke; schedules a lookup once typing pauses."""
        self.view.query = text
        query = text.strip()
        if len(query) < MIN_QUERY_LENGTH:
            self._debouncer.cancel()
            # Invalidate any lookup already in flight.
            self._sequencer.issue()
            self.view.suggestions = []
            self.view.status = SelectorStatus.IDLE
            self.view.error = None
            return
        self._debouncer.trigger(query)

    async def settle(self) -> None:
        """Wait for any scheduled or running lookup to finish."""
        await self._debouncer.flush()

    async def search_now(self, query: str) -> list[GeocodeSuggestion]:
        """Look *query* up immediately and replace the suggestion list."""
        query = query.strip()
        if len(query) < MIN_QUERY_LENGTH:
            self.view.suggestions = []
            return []

        token = self._sequencer.issue()
        self.view.status = SelectorStatus.SEARCHING
        try:
            suggestions = await self._geocoder.search(query, limit=self._limit)
        except (ProviderError, InputValidationError) as exc:
            if not self._sequencer.is_current(token):
                return []
            self._logger.warning("location_search_failed", query=query, error=str(exc))
            self.view.suggestions = []
            self.view.status = SelectorStatus.ERROR
            self.view.error = exc.public_message
            return []

        if not self._sequencer.is_current(token):
            self._logger.debug("stale_suggestions_discarded", query=query)
            return []

        self.view.suggestions = list(suggestions[: self._limit])
        self.view.status = SelectorStatus.READY
        self.view.error = None
        return self.view.suggestions

    # -- Selection -------------------------------------------------------------

    async def select(self, suggestion: GeocodeSuggestion) -> Location:
        """Choose a suggestion from the list."""
        location = suggestion.to_location()
        await self._apply(location)
        return location

    async def submit(self, text: str | None = None) -> Location | None:
        """Form submit: accepted only when the text names a known suggestion."""
        text = (self.view.query if text is None else text).strip()
        for suggestion in self.view.suggestions:
            if suggestion.display_name == text:
                return await self.select(suggestion)

        self._logger.info("location_submit_unmatched", text=text)
        self.view.status = SelectorStatus.ERROR
        self.view.error = NO_MATCH_MESSAGE
        return None

    async def use_device_location(self) -> Location | None:
        """Locate the device, reverse-geocode it and select the result."""
        self._debouncer.cancel()
        self.view.status = SelectorStatus.LOCATING
        self.view.error = None
        try:
            if self._locator is None:
                raise GeolocationError(GeolocationErrorCode.UNSUPPORTED)
            lat, lon = await locate_with_timeout(self._locator, self._geolocation_timeout)
        except GeolocationError as exc:
            self._logger.info("device_location_failed", code=exc.code.value)
            self.view.status = SelectorStatus.ERROR
            self.view.error = exc.public_message
            return None

        try:
            location = await self._geocoder.reverse(lat, lon)
        except (ProviderError, InputValidationError) as exc:
            self._logger.warning("reverse_geocode_failed", lat=lat, lon=lon, error=str(exc))
            self.view.status = SelectorStatus.ERROR
            self.view.error = exc.public_message
            return None

        await self._apply(location)
        return location

    # -- Radius ------------------------------------------------------------------

    async def change_radius(self, value: object) -> int:
        """Clamp and apply a new radius; refresh results if a location is set."""
        radius = self._state.set_radius(value)
        self.view.radius = radius
        location = self._state.location
        if location is not None:
            await self._bus.publish(
                RefreshEvents(
                    lat=location.latitude,
                    lon=location.longitude,
                    name=location.display_name,
                    radius=radius,
                )
            )
        return radius

    # -- Restore -------------------------------------------------------------------

    async def restore(self) -> Location | None:
        """Re-apply the persisted location, if one is stored and valid."""
        location = self._state.restore_location()
        if location is None:
            return None
        self.view.query = location.display_name
        await self._publish_selected(location)
        return location

    # -- Internals -----------------------------------------------------------------

    async def _apply(self, location: Location) -> None:
        self._debouncer.cancel()
        self._sequencer.issue()
        self._state.set_location(location)
        self.view.query = location.display_name
        self.view.suggestions = []
        self.view.status = SelectorStatus.IDLE
        self.view.error = None
        await self._publish_selected(location)

    async def _publish_selected(self, location: Location) -> None:
        await self._bus.publish(
            LocationSelected(
                lat=location.latitude,
                lon=location.longitude,
                name=location.display_name,
                radius=self._state.radius,
            )
        )
