"""FastAPI routes for eventfinder.

Endpoint                       Method  Description
-----------------------------  ------  ----------------------------------------
/                              GET     Search page; renders cards when lat/lon given
/api/locations                 GET     Geocode suggestions for ``q`` (>= 2 chars)
/api/locations/reverse         GET     Display name for ``lat``/``lon``
/api/events                    POST    Events around a point (radius clamped, km -> miles)
/api/events/{event_id}         GET     One event as JSON
/event/{event_id}              GET     Event detail page (HTML)
/api/render-event-card         POST    Card HTML for an event body
/api/render-map-popup          POST    Marker popup HTML for an event body
/api/health                    GET     Health check + provider availability

Dependencies are resolved from ``app.state`` (populated by ``_build_all`` in
``eventfinder.main``) through ``Annotated[..., Depends(...)]`` aliases.
Domain errors propagate to ``ErrorHandlingMiddleware``.
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import HTMLResponse

from eventfinder.api.schemas import (
    EventsRequest,
    EventsResponse,
    HealthResponse,
    LocationSuggestionResponse,
    ReverseLocationResponse,
)
from eventfinder.config.settings import Settings
from eventfinder.interfaces.event_provider import IEventProvider
from eventfinder.interfaces.geocode_provider import IGeocodeProvider
from eventfinder.models.event import DistanceUnit, EventQuery, EventRecord
from eventfinder.models.location import Location
from eventfinder.rendering.html import (
    ERROR_RESULTS_TEXT,
    render_event_card,
    render_event_detail_page,
    render_index_page,
    render_map_popup,
)
from eventfinder.utils.errors import EventFinderError
from eventfinder.utils.geo import clamp_radius, miles_to_km, validate_coordinates
from eventfinder.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

MIN_QUERY_LENGTH = 2
APP_VERSION = "0.1.0"

router = APIRouter()


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_settings(request: Request) -> Settings:
    """Return the application settings from application state."""
    return request.app.state.settings


def _get_geocoder(request: Request) -> IGeocodeProvider:
    return request.app.state.geocoder


def _get_events_provider(request: Request) -> IEventProvider:
    return request.app.state.events_provider


SettingsDep = Annotated[Settings, Depends(_get_settings)]
GeocoderDep = Annotated[IGeocodeProvider, Depends(_get_geocoder)]
EventsProviderDep = Annotated[IEventProvider, Depends(_get_events_provider)]


def _radius_km(raw: object, unit: DistanceUnit, settings: Settings) -> int:
    """Clamp a request radius to the configured km bounds."""
    if unit is DistanceUnit.MILES:
        try:
            raw = miles_to_km(float(raw))
        except (TypeError, ValueError):
            raw = None
    return clamp_radius(raw, settings.radius_min, settings.radius_max, settings.radius_default)


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------


@router.get(
    "/api/locations",
    response_model=list[LocationSuggestionResponse],
    summary="Geocode suggestions for a free-text query",
)
async def search_locations(
    geocoder: GeocoderDep,
    settings: SettingsDep,
    q: str = "",
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> list[LocationSuggestionResponse]:
    query = q.strip()
    if len(query) < MIN_QUERY_LENGTH:
        return []
    limit = min(limit or settings.suggestion_limit, settings.suggestion_limit)
    suggestions = await geocoder.search(query, limit=limit)
    return [LocationSuggestionResponse(**s.model_dump()) for s in suggestions]


@router.get(
    "/api/locations/reverse",
    response_model=ReverseLocationResponse,
    summary="Display name for a coordinate",
)
async def reverse_location(
    geocoder: GeocoderDep,
    lat: float,
    lon: float,
) -> ReverseLocationResponse:
    latitude, longitude = validate_coordinates(lat, lon)
    location = await geocoder.reverse(latitude, longitude)
    return ReverseLocationResponse(
        display_name=location.display_name,
        lat=location.latitude,
        lon=location.longitude,
    )


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@router.post(
    "/api/events",
    response_model=EventsResponse,
    summary="Upcoming events within a radius of a point",
)
async def search_events(
    body: EventsRequest,
    provider: EventsProviderDep,
    settings: SettingsDep,
) -> EventsResponse:
    latitude, longitude = validate_coordinates(body.latitude, body.longitude)
    radius_km = _radius_km(body.radius, body.unit, settings)
    query = EventQuery(
        latitude=latitude, longitude=longitude, radius=radius_km, unit=DistanceUnit.KM
    )
    _logger.info(
        "events_requested",
        lat=latitude,
        lon=longitude,
        radius_km=radius_km,
        radius_miles=query.to_miles(),
    )
    events = await provider.search_events(query)
    return EventsResponse(events=events)


@router.get(
    "/api/events/{event_id}",
    response_model=EventRecord,
    summary="A single event as JSON",
)
async def get_event(event_id: str, provider: EventsProviderDep) -> EventRecord:
    event = await provider.get_event(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail=f"Unknown event: {event_id}")
    return event


@router.get("/event/{event_id}", response_class=HTMLResponse, summary="Event detail page")
async def event_detail_page(event_id: str, provider: EventsProviderDep) -> HTMLResponse:
    event = await provider.get_event(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail=f"Unknown event: {event_id}")
    return HTMLResponse(render_event_detail_page(event))


# ---------------------------------------------------------------------------
# HTML fragments
# ---------------------------------------------------------------------------


@router.post("/api/render-event-card", response_class=HTMLResponse, summary="Event card HTML")
async def render_card(event: EventRecord) -> HTMLResponse:
    return HTMLResponse(render_event_card(event))


@router.post("/api/render-map-popup", response_class=HTMLResponse, summary="Map popup HTML")
async def render_popup(event: EventRecord) -> HTMLResponse:
    return HTMLResponse(render_map_popup(event))


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index_page(
    provider: EventsProviderDep,
    settings: SettingsDep,
    lat: float | None = None,
    lon: float | None = None,
    name: str | None = None,
    radius: str | None = None,
) -> HTMLResponse:
    """Search page.  With ``lat``/``lon`` the result cards are rendered server-side."""
    radius_km = clamp_radius(
        radius, settings.radius_min, settings.radius_max, settings.radius_default
    )
    if lat is None or lon is None:
        location = Location(
            latitude=settings.default_latitude,
            longitude=settings.default_longitude,
            display_name=settings.default_location_name,
        )
        return HTMLResponse(
            render_index_page(location, radius_km, settings.radius_min, settings.radius_max)
        )

    latitude, longitude = validate_coordinates(lat, lon)
    location = Location(
        latitude=latitude,
        longitude=longitude,
        display_name=name or f"{latitude:.6f}, {longitude:.6f}",
    )
    query = EventQuery(latitude=latitude, longitude=longitude, radius=radius_km)
    events: list[EventRecord] | None = None
    error_message: str | None = None
    try:
        events = await provider.search_events(query)
    except EventFinderError as exc:
        _logger.warning("index_events_failed", error=str(exc))
        error_message = ERROR_RESULTS_TEXT

    return HTMLResponse(
        render_index_page(
            location,
            radius_km,
            settings.radius_min,
            settings.radius_max,
            events=events,
            error_message=error_message,
        )
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/api/health", response_model=HealthResponse, summary="Application health check")
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers: dict[str, bool] = {}
    for key in ("geocoder", "events_provider"):
        provider = getattr(request.app.state, key, None)
        if provider is not None:
            providers[provider.get_provider_name()] = provider.is_available()

    if providers and all(providers.values()):
        status = "healthy"
    elif any(providers.values()):
        status = "degraded"
    else:
        status = "unhealthy"
    return HealthResponse(status=status, version=APP_VERSION, providers=providers)
