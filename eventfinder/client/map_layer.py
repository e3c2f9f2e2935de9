"""Map marker layer: one center marker plus one marker per located event.

The marker set is derived state.  On every ``EventsDataLoaded`` all event
markers are dropped and rebuilt from the new events, then the viewport is
fit around every marker (center included).  When no fit is possible (fewer
than two distinct points) the view falls back to the location at a wider
zoom.

Cross-references with the results list:

- card click  -> ``HighlightEventMarker`` -> focus marker, open its popup
- marker click -> open popup, pulse, publish ``HighlightEventCard``
"""

from __future__ import annotations

import asyncio

import structlog

from eventfinder.client.bus import EventBus
from eventfinder.client.state import AppState
from eventfinder.client.views import MapView
from eventfinder.models.event import EventRecord
from eventfinder.models.location import Location
from eventfinder.models.map import CENTER_MARKER_KEY, Marker, MarkerKind
from eventfinder.models.notifications import (
    EventsDataLoaded,
    HighlightEventCard,
    HighlightEventMarker,
    LocationSelected,
)
from eventfinder.rendering.html import render_location_popup, render_map_popup
from eventfinder.utils.errors import RenderError
from eventfinder.utils.geo import bounding_box, fit_bounds_zoom
from eventfinder.utils.logging import get_logger


class MapMarkerLayer:
    """Keeps a ``MapView`` in sync with the selected location and event set.

    Parameters
    ----------
    bus:
        Notification bus.
    state:
        Read for the current location when re-fitting.
    initial_location:
        Where the map starts before anything is selected.
    width_px, height_px:
        Viewport size used for bounds fitting.
    padding_px:
        Padding kept around fitted bounds on every side.
    default_zoom:
        Zoom when recentering on a newly selected location.
    max_fit_zoom:
        Upper limit for the fitted zoom.
    focus_zoom:
        Zoom when focusing a single event marker.
    fallback_zoom:
        Zoom used when bounds cannot be fit.
    pulse_duration:
        Seconds a clicked marker keeps its pulse.
    """

    def __init__(
        self,
        bus: EventBus,
        state: AppState,
        initial_location: Location,
        width_px: int = 800,
        height_px: int = 600,
        padding_px: int = 50,
        default_zoom: int = 13,
        max_fit_zoom: int = 14,
        focus_zoom: int = 14,
        fallback_zoom: int = 10,
        pulse_duration: float = 2.0,
    ) -> None:
        self._bus = bus
        self._state = state
        self._width = width_px
        self._height = height_px
        self._padding = padding_px
        self._default_zoom = default_zoom
        self._max_fit_zoom = max_fit_zoom
        self._focus_zoom = focus_zoom
        self._fallback_zoom = fallback_zoom
        self._pulse_duration = pulse_duration
        self._pulse_handles: dict[str, asyncio.TimerHandle] = {}
        self._location = initial_location
        self.view = MapView(
            center=(initial_location.latitude, initial_location.longitude),
            zoom=default_zoom,
        )
        self._place_center_marker(initial_location)
        self._logger: structlog.BoundLogger = get_logger(__name__)

    def attach(self) -> None:
        self._bus.subscribe(LocationSelected, self._on_location_selected)
        self._bus.subscribe(EventsDataLoaded, self._on_events_loaded)
        self._bus.subscribe(HighlightEventMarker, self._on_highlight_marker)

    # -- Notification handlers -------------------------------------------------

    def _on_location_selected(self, notification: LocationSelected) -> None:
        location = Location(
            latitude=notification.lat,
            longitude=notification.lon,
            display_name=notification.name,
        )
        self._location = location
        self.view.center = (location.latitude, location.longitude)
        self.view.zoom = self._default_zoom
        self._place_center_marker(location)
        self.view.open_popup = CENTER_MARKER_KEY

    def _on_events_loaded(self, notification: EventsDataLoaded) -> None:
        self.sync_markers(notification.events)

    def _on_highlight_marker(self, notification: HighlightEventMarker) -> None:
        marker = self.view.markers.get(notification.event_id)
        if marker is None or marker.kind is not MarkerKind.EVENT:
            self._logger.info("marker_not_found", event_id=notification.event_id)
            return
        self.view.center = (marker.latitude, marker.longitude)
        self.view.zoom = self._focus_zoom
        self.view.open_popup = marker.key

    # -- Marker set ------------------------------------------------------------

    def sync_markers(self, events: tuple[EventRecord, ...] | list[EventRecord]) -> None:
        """Replace every event marker with one per located event, then fit."""
        self._clear_event_markers()

        skipped = 0
        for event in events:
            if not event.has_coordinates:
                skipped += 1
                self._logger.debug("event_marker_skipped", event_id=event.id, reason="no_coordinates")
                continue
            if event.id == CENTER_MARKER_KEY:
                skipped += 1
                self._logger.warning("event_marker_skipped", event_id=event.id, reason="reserved_key")
                continue
            try:
                popup = render_map_popup(event)
            except RenderError as exc:
                skipped += 1
                self._logger.warning("event_marker_skipped", event_id=event.id, error=str(exc))
                continue
            self.view.markers[event.id] = Marker(
                key=event.id,
                latitude=event.venue.latitude,
                longitude=event.venue.longitude,
                kind=MarkerKind.EVENT,
                title=event.name,
                popup_html=popup,
            )

        self._logger.info(
            "event_markers_synced",
            markers=len(self.view.event_marker_keys),
            skipped=skipped,
        )
        self._fit_to_markers()

    def _clear_event_markers(self) -> None:
        for key in list(self.view.event_marker_keys):
            del self.view.markers[key]
        for handle in self._pulse_handles.values():
            handle.cancel()
        self._pulse_handles.clear()
        self.view.pulsing.clear()
        if self.view.open_popup != CENTER_MARKER_KEY:
            self.view.open_popup = None

    def _place_center_marker(self, location: Location) -> None:
        self.view.markers[CENTER_MARKER_KEY] = Marker(
            key=CENTER_MARKER_KEY,
            latitude=location.latitude,
            longitude=location.longitude,
            kind=MarkerKind.CENTER,
            title=location.display_name,
            popup_html=render_location_popup(location),
        )

    def _fit_to_markers(self) -> None:
        points = [(m.latitude, m.longitude) for m in self.view.markers.values()]
        try:
            bounds = bounding_box(points)
            center, zoom = fit_bounds_zoom(
                bounds,
                self._width,
                self._height,
                padding_px=(self._padding, self._padding),
                max_zoom=self._max_fit_zoom,
            )
        except ValueError as exc:
            location = self._state.location or self._location
            self._logger.debug("bounds_fit_fallback", reason=str(exc))
            self.view.center = (location.latitude, location.longitude)
            self.view.zoom = self._fallback_zoom
            return
        self.view.center = center
        self.view.zoom = zoom

    # -- Marker interaction ----------------------------------------------------

    async def click_marker(self, key: str) -> None:
        """Open the marker's popup, pulse it and highlight the matching card."""
        marker = self.view.markers.get(key)
        if marker is None:
            self._logger.info("marker_not_found", event_id=key)
            return
        self.view.open_popup = key
        if marker.kind is not MarkerKind.EVENT:
            return

        self.view.pulsing.add(key)
        previous = self._pulse_handles.pop(key, None)
        if previous is not None:
            previous.cancel()
        self._pulse_handles[key] = asyncio.get_running_loop().call_later(
            self._pulse_duration, self._end_pulse, key
        )
        await self._bus.publish(HighlightEventCard(event_id=key))

    def _end_pulse(self, key: str) -> None:
        self.view.pulsing.discard(key)
        self._pulse_handles.pop(key, None)
