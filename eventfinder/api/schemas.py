"""Pydantic request/response schemas for the eventfinder HTTP API.

Request schemas end with "Request", response schemas with "Response".
``EventRecord`` itself is used as the response item for events, so those
payloads are camelCase; location payloads keep Nominatim's snake_case
field names (``display_name``, ``place_id``).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from eventfinder.models.event import DistanceUnit, EventRecord


class LocationSuggestionResponse(BaseModel):
    """One element of the ``GET /api/locations`` array."""

    display_name: str
    lat: float
    lon: float
    place_id: str | None = None


class ReverseLocationResponse(BaseModel):
    display_name: str
    lat: float
    lon: float


class EventsRequest(BaseModel):
    """Body of ``POST /api/events``.

    ``radius`` is deliberately loose: anything non-numeric falls back to the
    default radius and numbers are clamped to the configured bounds.
    """

    latitude: float
    longitude: float
    radius: Any = Field(default=None, description="Search radius in ``unit``.")
    unit: DistanceUnit = DistanceUnit.KM


class EventsResponse(BaseModel):
    events: list[EventRecord] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body: a stable code plus a user-safe message."""

    error: str
    detail: str | None = None
