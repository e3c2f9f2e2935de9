"""Ticketmaster Discovery API events provider.

Implements IEventProvider with two endpoints:

- ``/discovery/v2/events.json``: events within a radius of a point, for
  the configured window (default: the next 7 days), sorted by date.
- ``/discovery/v2/events/{id}.json``: a single event for the detail page.

Ticketmaster expects the radius in whole miles, so ``EventQuery.to_miles()``
is applied here.  Each raw event is normalized through
``EventRecord.from_ticketmaster``; items that fail to parse are skipped and
logged rather than failing the whole response.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from eventfinder.config.settings import Settings
from eventfinder.interfaces.event_provider import IEventProvider
from eventfinder.models.event import EventQuery, EventRecord
from eventfinder.utils.errors import (
    ConfigurationError,
    InputValidationError,
    ProviderResponseError,
    ProviderUnavailableError,
)
from eventfinder.utils.logging import get_logger

_PROVIDER_NAME = "ticketmaster"
_SEARCH_PATH = "/discovery/v2/events.json"
_DETAIL_PATH = "/discovery/v2/events/{event_id}.json"
_SORT = "date,asc"


def _format_timestamp(moment: datetime) -> str:
    """UTC timestamp without fractional seconds, as Discovery requires."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class TicketmasterProvider(IEventProvider):
    """Upcoming events around a point via the Ticketmaster Discovery API.

    Parameters
    ----------
    http_client:
        Injected ``httpx.AsyncClient``.
    settings:
        Supplies the API key, base URL, page size, time window and timeout.
    clock:
        Returns "now"; injectable so tests get a fixed search window.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: Settings,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._http = http_client
        self._api_key = settings.ticketmaster_api_key
        self._base_url = settings.ticketmaster_base_url.rstrip("/")
        self._page_size = settings.ticketmaster_page_size
        self._window = timedelta(days=settings.ticketmaster_window_days)
        self._timeout = settings.http_timeout
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))
        self._logger = get_logger(__name__)

    # -- Private helpers -------------------------------------------------------

    def _require_key(self) -> None:
        if not self._api_key:
            raise ConfigurationError(
                message="TICKETMASTER_API_KEY is not set",
                provider_name=_PROVIDER_NAME,
            )

    async def _get(self, path: str, params: dict[str, Any]) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            return await self._http.get(
                url, params={"apikey": self._api_key, **params}, timeout=self._timeout
            )
        except httpx.HTTPError as exc:
            self._logger.warning("ticketmaster_request_failed", path=path, error=str(exc))
            raise ProviderUnavailableError(
                message=f"Request to {path} failed: {exc}",
                provider_name=_PROVIDER_NAME,
            ) from exc

    def _decode(self, response: httpx.Response, path: str) -> dict[str, Any]:
        if response.status_code >= 400:
            self._logger.warning(
                "ticketmaster_http_error",
                path=path,
                status=response.status_code,
                body=response.text[:200],
            )
            raise ProviderResponseError(
                message=f"HTTP {response.status_code} from {path}",
                provider_name=_PROVIDER_NAME,
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            self._logger.warning("ticketmaster_malformed_body", path=path, error=str(exc))
            raise ProviderResponseError(
                message=f"Malformed JSON from {path}",
                provider_name=_PROVIDER_NAME,
                status_code=response.status_code,
            ) from exc
        if not isinstance(payload, dict):
            raise ProviderResponseError(
                message=f"Expected a JSON object from {path}",
                provider_name=_PROVIDER_NAME,
                status_code=response.status_code,
            )
        return payload

    def build_search_params(self, query: EventQuery) -> dict[str, Any]:
        """Query parameters (minus the API key) for an events search."""
        start = self._clock()
        return {
            "latlong": f"{query.latitude},{query.longitude}",
            "radius": query.to_miles(),
            "unit": "miles",
            "size": self._page_size,
            "sort": _SORT,
            "startDateTime": _format_timestamp(start),
            "endDateTime": _format_timestamp(start + self._window),
        }

    # -- Public API ------------------------------------------------------------

    async def search_events(self, query: EventQuery) -> list[EventRecord]:
        self._require_key()
        params = self.build_search_params(query)
        response = await self._get(_SEARCH_PATH, params)
        payload = self._decode(response, _SEARCH_PATH)

        # No "_embedded" key means zero results, not an error.
        embedded = payload.get("_embedded") or {}
        raw_events = (embedded.get("events") or []) if isinstance(embedded, dict) else None
        if not isinstance(raw_events, list):
            self._logger.warning(
                "ticketmaster_malformed_body",
                path=_SEARCH_PATH,
                error="_embedded.events is not a list",
            )
            raise ProviderResponseError(
                message=f"Unexpected _embedded shape from {_SEARCH_PATH}",
                provider_name=_PROVIDER_NAME,
                status_code=response.status_code,
            )
        events: list[EventRecord] = []
        for item in raw_events:
            try:
                events.append(EventRecord.from_ticketmaster(item))
            except (KeyError, TypeError, IndexError, AttributeError, ValidationError) as exc:
                self._logger.warning(
                    "ticketmaster_event_skipped",
                    event_id=item.get("id") if isinstance(item, dict) else None,
                    error=str(exc)[:200],
                )

        self._logger.info(
            "events_search_complete",
            latlong=params["latlong"],
            radius_miles=params["radius"],
            results=len(events),
            skipped=len(raw_events) - len(events),
        )
        return events

    async def get_event(self, event_id: str) -> EventRecord | None:
        event_id = (event_id or "").strip()
        if not event_id:
            raise InputValidationError("Event id must not be empty")
        self._require_key()

        path = _DETAIL_PATH.format(event_id=quote(event_id, safe=""))
        response = await self._get(path, {})
        if response.status_code == 404:
            self._logger.info("ticketmaster_event_not_found", event_id=event_id)
            return None
        payload = self._decode(response, path)
        try:
            return EventRecord.from_ticketmaster(payload)
        except (KeyError, TypeError, IndexError, AttributeError, ValidationError) as exc:
            raise ProviderResponseError(
                message=f"Unparseable event {event_id}: {exc}",
                provider_name=_PROVIDER_NAME,
            ) from exc

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    def is_available(self) -> bool:
        return bool(self._api_key)
