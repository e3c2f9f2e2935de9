"""Client session: wires the bus, the state and the four components.

A ``ClientSession`` is what a page load is in the browser: it builds the
components, subscribes them to each other through the ``EventBus`` and
re-applies the last saved location.

    session = ClientSession.from_settings(settings, http_client, config)
    await session.start()
    session.selector.input_text("Amsterdam")
    await session.settle()
"""

from __future__ import annotations

from typing import Any, Callable

import httpx
import structlog

from eventfinder.client.bus import EventBus
from eventfinder.client.distance_annotator import DistanceAnnotator
from eventfinder.client.location_selector import LocationSelector
from eventfinder.client.map_layer import MapMarkerLayer
from eventfinder.client.results_renderer import ResultsRenderer
from eventfinder.client.state import AppState
from eventfinder.config.settings import Settings
from eventfinder.interfaces.device_locator import IDeviceLocator
from eventfinder.interfaces.event_provider import IEventProvider
from eventfinder.interfaces.geocode_provider import IGeocodeProvider
from eventfinder.interfaces.state_store import IStateStore
from eventfinder.models.location import Location
from eventfinder.providers.device.locators import CachedDeviceLocator, StaticDeviceLocator
from eventfinder.providers.event.ticketmaster_provider import TicketmasterProvider
from eventfinder.providers.geocode.nominatim_provider import NominatimProvider
from eventfinder.providers.state.sqlite_state_store import SQLiteStateStore
from eventfinder.utils.logging import get_logger


class ClientSession:
    """All client components for one user session.

    Parameters
    ----------
    geocoder, events_provider:
        Upstream lookups, either the real providers or an
        ``EventFinderAPIClient``.
    store:
        Persistence for the saved location.
    locator:
        Device locator; wrapped so positions are reused for
        ``geolocation_max_age_s``.  ``None`` means unsupported.
    settings:
        Timing, radius and viewport settings.
    config:
        Resolved config dict (see ``load_config``); only the ``map`` and
        ``results`` sections are read.
    visibility_probe:
        Passed through to the results renderer.
    """

    def __init__(
        self,
        geocoder: IGeocodeProvider,
        events_provider: IEventProvider,
        store: IStateStore,
        locator: IDeviceLocator | None = None,
        settings: Settings | None = None,
        config: dict[str, Any] | None = None,
        visibility_probe: Callable[[str], bool] | None = None,
    ) -> None:
        s = settings or Settings()
        config = config or {}
        map_cfg = config.get("map", {})
        results_cfg = config.get("results", {})

        if locator is not None:
            locator = CachedDeviceLocator(locator, maximum_age=s.geolocation_max_age_s)

        self.bus = EventBus()
        self.state = AppState(
            store,
            radius_min=s.radius_min,
            radius_max=s.radius_max,
            radius_default=s.radius_default,
        )
        self.selector = LocationSelector(
            self.bus,
            self.state,
            geocoder,
            locator=locator,
            suggestion_limit=s.suggestion_limit,
            input_debounce=s.input_debounce_ms / 1000,
            geolocation_timeout=s.geolocation_timeout_s,
        )
        self.annotator = DistanceAnnotator(locator, timeout=s.distance_timeout_s)
        self.results = ResultsRenderer(
            self.bus,
            self.state,
            events_provider,
            annotator=self.annotator,
            query_debounce=s.query_debounce_ms / 1000,
            pulse_duration=results_cfg.get("pulse_duration_s", 2.0),
            visibility_probe=visibility_probe,
        )
        self.map = MapMarkerLayer(
            self.bus,
            self.state,
            initial_location=Location(
                latitude=s.default_latitude,
                longitude=s.default_longitude,
                display_name=s.default_location_name,
            ),
            width_px=map_cfg.get("width_px", s.map_width_px),
            height_px=map_cfg.get("height_px", s.map_height_px),
            padding_px=map_cfg.get("padding_px", 50),
            default_zoom=map_cfg.get("default_zoom", 13),
            max_fit_zoom=map_cfg.get("max_fit_zoom", 14),
            focus_zoom=map_cfg.get("focus_zoom", 14),
            fallback_zoom=map_cfg.get("fallback_zoom", 10),
            pulse_duration=map_cfg.get("pulse_duration_s", 2.0),
        )
        self._attached = False
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        http_client: httpx.AsyncClient,
        config: dict[str, Any] | None = None,
    ) -> ClientSession:
        """Session talking straight to Nominatim and Ticketmaster."""
        store = SQLiteStateStore(settings.state_db_path)
        store.initialize()
        locator = StaticDeviceLocator.from_settings(settings)
        return cls(
            geocoder=NominatimProvider(http_client, settings),
            events_provider=TicketmasterProvider(http_client, settings),
            store=store,
            locator=locator if locator.is_supported() else None,
            settings=settings,
            config=config,
        )

    def attach(self) -> None:
        """Subscribe components to each other.  Idempotent."""
        if self._attached:
            return
        self.results.attach()
        self.map.attach()
        self._attached = True

    async def start(self) -> Location | None:
        """Attach and restore the saved location, if any."""
        self.attach()
        location = await self.selector.restore()
        self._logger.info(
            "client_session_started",
            restored=location.display_name if location else None,
        )
        return location

    async def settle(self) -> None:
        """Wait until no lookup or query is scheduled or running."""
        await self.selector.settle()
        await self.results.settle()
