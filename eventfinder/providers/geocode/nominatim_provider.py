"""Nominatim (OpenStreetMap) geocoding provider.

Implements IGeocodeProvider against the public Nominatim HTTP API:

- ``/search?q=...&format=json&limit=N`` for free-text lookups
- ``/reverse?format=json&lat=...&lon=...`` for device positions

Nominatim's usage policy requires an identifying ``User-Agent``; it is sent
with every request.  Network failures raise ``ProviderUnavailableError``,
error statuses and malformed bodies raise ``ProviderResponseError``.  The
upstream detail is logged here and never shown to users.
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from eventfinder.config.settings import Settings
from eventfinder.interfaces.geocode_provider import IGeocodeProvider
from eventfinder.models.location import GeocodeSuggestion, Location
from eventfinder.utils.errors import (
    InputValidationError,
    ProviderResponseError,
    ProviderUnavailableError,
)
from eventfinder.utils.geo import validate_coordinates
from eventfinder.utils.logging import get_logger

_PROVIDER_NAME = "nominatim"
_REVERSE_ZOOM = 18


class NominatimProvider(IGeocodeProvider):
    """Forward and reverse geocoding via Nominatim.

    Parameters
    ----------
    http_client:
        Injected ``httpx.AsyncClient`` for testability and connection pooling.
    settings:
        Supplies the base URL, User-Agent and timeout.
    """

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings) -> None:
        self._http = http_client
        self._base_url = settings.nominatim_base_url.rstrip("/")
        self._headers = {
            "User-Agent": settings.http_user_agent,
            "Accept": "application/json",
        }
        self._timeout = settings.http_timeout
        self._logger = get_logger(__name__)

    # -- Private helpers -------------------------------------------------------

    async def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        url = f"{self._base_url}{path}"
        try:
            response = await self._http.get(
                url, params=params, headers=self._headers, timeout=self._timeout
            )
        except httpx.HTTPError as exc:
            self._logger.warning("nominatim_request_failed", url=url, error=str(exc))
            raise ProviderUnavailableError(
                message=f"Request to {path} failed: {exc}",
                provider_name=_PROVIDER_NAME,
            ) from exc

        if response.status_code >= 400:
            self._logger.warning(
                "nominatim_http_error",
                url=url,
                status=response.status_code,
                body=response.text[:200],
            )
            raise ProviderResponseError(
                message=f"HTTP {response.status_code} from {path}",
                provider_name=_PROVIDER_NAME,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            self._logger.warning("nominatim_malformed_body", url=url, error=str(exc))
            raise ProviderResponseError(
                message=f"Malformed JSON from {path}",
                provider_name=_PROVIDER_NAME,
                status_code=response.status_code,
            ) from exc

    # -- Public API ------------------------------------------------------------

    async def search(self, query: str, limit: int = 10) -> list[GeocodeSuggestion]:
        query = (query or "").strip()
        if not query:
            raise InputValidationError("Search query must not be empty")
        limit = max(1, int(limit))

        payload = await self._get_json(
            "/search", {"q": query, "format": "json", "limit": limit}
        )
        if not isinstance(payload, list):
            raise ProviderResponseError(
                message="Expected a JSON array from /search",
                provider_name=_PROVIDER_NAME,
            )

        suggestions: list[GeocodeSuggestion] = []
        for item in payload[:limit]:
            try:
                suggestions.append(GeocodeSuggestion.from_nominatim(item))
            except (KeyError, TypeError, ValidationError) as exc:
                self._logger.debug(
                    "nominatim_item_skipped", error=str(exc)[:200]
                )

        self._logger.info(
            "geocode_search_complete", query=query, results=len(suggestions)
        )
        return suggestions

    async def reverse(self, latitude: float, longitude: float) -> Location:
        lat, lon = validate_coordinates(latitude, longitude)
        payload = await self._get_json(
            "/reverse",
            {
                "format": "json",
                "lat": lat,
                "lon": lon,
                "zoom": _REVERSE_ZOOM,
                "addressdetails": 1,
            },
        )
        if not isinstance(payload, dict):
            raise ProviderResponseError(
                message="Expected a JSON object from /reverse",
                provider_name=_PROVIDER_NAME,
            )

        name = payload.get("display_name")
        if not name:
            self._logger.info("reverse_geocode_unnamed", lat=lat, lon=lon)
            return Location.from_coordinates(lat, lon)
        return Location(latitude=lat, longitude=lon, display_name=name)

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    def is_available(self) -> bool:
        return bool(self._base_url)
