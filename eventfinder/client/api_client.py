"""HTTP client for the eventfinder server's own ``/api/*`` endpoints.

Implements both ``IGeocodeProvider`` and ``IEventProvider`` so client
components can run against a deployed server exactly as they run against
the upstream providers directly.  Server error bodies
(``{"error": code, "detail": message}``) are mapped back onto the
exception hierarchy: ``validation_error`` becomes ``InputValidationError``,
everything else a ``ProviderResponseError``.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from eventfinder.interfaces.event_provider import IEventProvider
from eventfinder.interfaces.geocode_provider import IGeocodeProvider
from eventfinder.models.event import EventQuery, EventRecord
from eventfinder.models.location import GeocodeSuggestion, Location
from eventfinder.utils.errors import (
    InputValidationError,
    ProviderResponseError,
    ProviderUnavailableError,
)
from eventfinder.utils.logging import get_logger

_PROVIDER_NAME = "eventfinder_api"


class EventFinderAPIClient(IGeocodeProvider, IEventProvider):
    """Talks to an eventfinder server over HTTP.

    Parameters
    ----------
    http_client:
        Injected ``httpx.AsyncClient``.  Its ``base_url`` (or *base_url*)
        points at the server.
    base_url:
        Prefix for every request path; empty when the client already has one.
    """

    def __init__(self, http_client: httpx.AsyncClient, base_url: str = "") -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._logger = get_logger(__name__)

    # -- Private helpers -------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            self._logger.warning("api_request_failed", method=method, path=path, error=str(exc))
            raise ProviderUnavailableError(
                message=f"{method} {path} failed: {exc}", provider_name=_PROVIDER_NAME
            ) from exc
        return response

    def _raise_for_error(self, response: httpx.Response, path: str) -> None:
        if response.status_code < 400:
            return
        code, detail = "", response.text[:200]
        try:
            body = response.json()
            code = body.get("error", "")
            detail = body.get("detail", detail)
        except (ValueError, AttributeError):
            pass
        self._logger.warning("api_error_response", path=path, status=response.status_code, error=code)
        if code == "validation_error":
            raise InputValidationError(str(detail), provider_name=_PROVIDER_NAME)
        raise ProviderResponseError(
            message=f"HTTP {response.status_code} from {path}: {detail}",
            provider_name=_PROVIDER_NAME,
            status_code=response.status_code,
        )

    def _json(self, response: httpx.Response, path: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderResponseError(
                message=f"Malformed JSON from {path}", provider_name=_PROVIDER_NAME
            ) from exc

    # -- IGeocodeProvider ------------------------------------------------------

    async def search(self, query: str, limit: int = 10) -> list[GeocodeSuggestion]:
        query = (query or "").strip()
        if not query:
            raise InputValidationError("Search query must not be empty")
        path = "/api/locations"
        response = await self._request("GET", path, params={"q": query, "limit": limit})
        self._raise_for_error(response, path)
        try:
            return [GeocodeSuggestion.model_validate(item) for item in self._json(response, path)]
        except (TypeError, ValidationError) as exc:
            raise ProviderResponseError(
                message=f"Unexpected payload from {path}: {exc}", provider_name=_PROVIDER_NAME
            ) from exc

    async def reverse(self, latitude: float, longitude: float) -> Location:
        path = "/api/locations/reverse"
        response = await self._request("GET", path, params={"lat": latitude, "lon": longitude})
        self._raise_for_error(response, path)
        payload = self._json(response, path)
        try:
            return Location(
                latitude=payload["lat"],
                longitude=payload["lon"],
                display_name=payload["display_name"],
            )
        except (KeyError, TypeError, ValidationError) as exc:
            raise ProviderResponseError(
                message=f"Unexpected payload from {path}: {exc}", provider_name=_PROVIDER_NAME
            ) from exc

    # -- IEventProvider --------------------------------------------------------

    async def search_events(self, query: EventQuery) -> list[EventRecord]:
        path = "/api/events"
        response = await self._request("POST", path, json=query.model_dump(mode="json"))
        self._raise_for_error(response, path)
        payload = self._json(response, path)
        try:
            return [EventRecord.model_validate(item) for item in payload["events"]]
        except (KeyError, TypeError, ValidationError) as exc:
            raise ProviderResponseError(
                message=f"Unexpected payload from {path}: {exc}", provider_name=_PROVIDER_NAME
            ) from exc

    async def get_event(self, event_id: str) -> EventRecord | None:
        path = f"/api/events/{quote(event_id, safe='')}"
        response = await self._request("GET", path)
        if response.status_code == 404:
            return None
        self._raise_for_error(response, path)
        try:
            return EventRecord.model_validate(self._json(response, path))
        except ValidationError as exc:
            raise ProviderResponseError(
                message=f"Unexpected payload from {path}: {exc}", provider_name=_PROVIDER_NAME
            ) from exc

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    def is_available(self) -> bool:
        return True
