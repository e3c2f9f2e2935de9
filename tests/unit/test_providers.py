"""Unit tests for the HTTP providers, driven through httpx.MockTransport."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Callable

import httpx
import pytest

from eventfinder.client.api_client import EventFinderAPIClient
from eventfinder.config.settings import Settings
from eventfinder.models.event import EventQuery
from eventfinder.providers.event.ticketmaster_provider import TicketmasterProvider
from eventfinder.providers.geocode.nominatim_provider import NominatimProvider
from eventfinder.utils.errors import (
    GENERIC_PROVIDER_MESSAGE,
    ConfigurationError,
    InputValidationError,
    ProviderError,
    ProviderResponseError,
    ProviderUnavailableError,
)
from tests.conftest import make_event, make_settings, ticketmaster_item

_FIXED_NOW = datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _json(payload: Any, status: int = 200) -> httpx.Response:
    return httpx.Response(status, json=payload)


# ======================================================================
# Nominatim
# ======================================================================


class TestNominatimProvider:
    @pytest.fixture()
    def settings(self) -> Settings:
        return make_settings(
            nominatim_base_url="https://nominatim.test/", http_user_agent="eventfinder-tests/1"
        )

    @pytest.mark.asyncio
    async def test_search_parses_and_skips_bad_items(self, settings: Settings) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _json(
                [
                    {
                        "display_name": "Amsterdam, Noord-Holland, Nederland",
                        "lat": "52.3730796",
                        "lon": "4.8924534",
                        "place_id": 250016,
                    },
                    {"display_name": "Broken entry", "lat": "52.1"},
                ]
            )

        async with _client(handler) as http:
            provider = NominatimProvider(http, settings)
            results = await provider.search("  Amsterdam ", limit=5)

        assert len(results) == 1
        assert results[0].lat == pytest.approx(52.3730796)
        assert results[0].place_id == "250016"

        request = seen[0]
        assert request.url.host == "nominatim.test"
        assert request.url.path == "/search"
        assert request.url.params["q"] == "Amsterdam"
        assert request.url.params["format"] == "json"
        assert request.url.params["limit"] == "5"
        assert request.headers["user-agent"] == "eventfinder-tests/1"

    @pytest.mark.asyncio
    async def test_empty_query_rejected_without_request(self, settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        async with _client(handler) as http:
            provider = NominatimProvider(http, settings)
            with pytest.raises(InputValidationError):
                await provider.search("   ")

    @pytest.mark.asyncio
    async def test_http_error_status(self, settings: Settings) -> None:
        async with _client(lambda r: httpx.Response(503, text="overloaded")) as http:
            provider = NominatimProvider(http, settings)
            with pytest.raises(ProviderResponseError) as exc_info:
                await provider.search("Amsterdam")

        assert exc_info.value.status_code == 503
        assert exc_info.value.provider_name == "nominatim"
        assert exc_info.value.public_message == GENERIC_PROVIDER_MESSAGE

    @pytest.mark.asyncio
    async def test_network_failure(self, settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as http:
            provider = NominatimProvider(http, settings)
            with pytest.raises(ProviderUnavailableError):
                await provider.search("Amsterdam")

    @pytest.mark.asyncio
    async def test_unreachable_and_error_status_look_the_same(self, settings: Settings) -> None:
        def refused(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        errors: list[ProviderError] = []
        for handler in (refused, lambda r: httpx.Response(500)):
            async with _client(handler) as http:
                with pytest.raises(ProviderError) as exc_info:
                    await NominatimProvider(http, settings).search("Amsterdam")
                errors.append(exc_info.value)

        assert errors[0].public_code == errors[1].public_code
        assert errors[0].public_message == errors[1].public_message

    @pytest.mark.asyncio
    async def test_malformed_body(self, settings: Settings) -> None:
        async with _client(lambda r: httpx.Response(200, text="<html>")) as http:
            provider = NominatimProvider(http, settings)
            with pytest.raises(ProviderResponseError):
                await provider.search("Amsterdam")

    @pytest.mark.asyncio
    async def test_non_list_body(self, settings: Settings) -> None:
        async with _client(lambda r: _json({"error": "nope"})) as http:
            provider = NominatimProvider(http, settings)
            with pytest.raises(ProviderResponseError):
                await provider.search("Amsterdam")

    @pytest.mark.asyncio
    async def test_reverse(self, settings: Settings) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _json({"display_name": "Dam, Amsterdam", "lat": "52.37", "lon": "4.89"})

        async with _client(handler) as http:
            location = await NominatimProvider(http, settings).reverse(52.3731, 4.8932)

        assert location.display_name == "Dam, Amsterdam"
        assert (location.latitude, location.longitude) == (52.3731, 4.8932)
        assert seen[0].url.path == "/reverse"
        assert seen[0].url.params["zoom"] == "18"

    @pytest.mark.asyncio
    async def test_reverse_without_name_uses_coordinates(self, settings: Settings) -> None:
        async with _client(lambda r: _json({"error": "Unable to geocode"})) as http:
            location = await NominatimProvider(http, settings).reverse(10.0, 20.0)

        assert location.display_name == "10.000000, 20.000000"

    @pytest.mark.asyncio
    async def test_reverse_invalid_coordinates(self, settings: Settings) -> None:
        async with _client(lambda r: _json({})) as http:
            with pytest.raises(InputValidationError):
                await NominatimProvider(http, settings).reverse(95.0, 0.0)

    def test_provider_metadata(self, settings: Settings) -> None:
        provider = NominatimProvider(httpx.AsyncClient(), settings)
        assert provider.get_provider_name() == "nominatim"
        assert provider.is_available() is True


# ======================================================================
# Ticketmaster
# ======================================================================


class TestTicketmasterProvider:
    @pytest.fixture()
    def settings(self) -> Settings:
        return make_settings(ticketmaster_base_url="https://tm.test")

    def test_search_params_convert_km_to_miles(self, settings: Settings) -> None:
        provider = TicketmasterProvider(httpx.AsyncClient(), settings, clock=lambda: _FIXED_NOW)
        params = provider.build_search_params(
            EventQuery(latitude=52.3676, longitude=4.9041, radius=40)
        )
        assert params == {
            "latlong": "52.3676,4.9041",
            "radius": 25,
            "unit": "miles",
            "size": 50,
            "sort": "date,asc",
            "startDateTime": "2025-05-01T12:00:00Z",
            "endDateTime": "2025-05-08T12:00:00Z",
        }

    @pytest.mark.asyncio
    async def test_search_events(self, settings: Settings) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _json(
                {
                    "_embedded": {
                        "events": [
                            ticketmaster_item("e1", "First"),
                            {"name": "No id, skipped"},
                            ticketmaster_item("e2", "Second"),
                        ]
                    }
                }
            )

        async with _client(handler) as http:
            provider = TicketmasterProvider(http, settings, clock=lambda: _FIXED_NOW)
            events = await provider.search_events(
                EventQuery(latitude=52.3676, longitude=4.9041, radius=40)
            )

        assert [e.id for e in events] == ["e1", "e2"]
        params = seen[0].url.params
        assert seen[0].url.path == "/discovery/v2/events.json"
        assert params["apikey"] == "test-key"
        assert params["radius"] == "25"
        assert params["unit"] == "miles"
        assert params["latlong"] == "52.3676,4.9041"

    @pytest.mark.asyncio
    async def test_no_embedded_means_no_events(self, settings: Settings) -> None:
        async with _client(lambda r: _json({"page": {"totalElements": 0}})) as http:
            provider = TicketmasterProvider(http, settings)
            events = await provider.search_events(EventQuery(latitude=0, longitude=0, radius=5))
        assert events == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [{"_embedded": ["oops"]}, {"_embedded": {"events": {"id": "e1"}}}],
    )
    async def test_malformed_embedded_is_a_response_error(
        self, settings: Settings, payload: dict[str, Any]
    ) -> None:
        async with _client(lambda r: _json(payload)) as http:
            provider = TicketmasterProvider(http, settings)
            with pytest.raises(ProviderResponseError) as exc_info:
                await provider.search_events(EventQuery(latitude=0, longitude=0, radius=5))
        assert exc_info.value.public_message == GENERIC_PROVIDER_MESSAGE

    @pytest.mark.asyncio
    async def test_missing_key_fails_before_request(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        async with _client(handler) as http:
            provider = TicketmasterProvider(http, make_settings(ticketmaster_api_key=""))
            assert provider.is_available() is False
            with pytest.raises(ConfigurationError):
                await provider.search_events(EventQuery(latitude=0, longitude=0, radius=5))

    @pytest.mark.asyncio
    async def test_error_status(self, settings: Settings) -> None:
        async with _client(lambda r: httpx.Response(401, json={"fault": "bad key"})) as http:
            provider = TicketmasterProvider(http, settings)
            with pytest.raises(ProviderResponseError) as exc_info:
                await provider.search_events(EventQuery(latitude=0, longitude=0, radius=5))
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_get_event(self, settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/discovery/v2/events/e1.json":
                return _json(ticketmaster_item("e1", "First"))
            return httpx.Response(404, json={"errors": []})

        async with _client(handler) as http:
            provider = TicketmasterProvider(http, settings)
            found = await provider.get_event("e1")
            missing = await provider.get_event("nope")

        assert found is not None and found.name == "First"
        assert missing is None

    @pytest.mark.asyncio
    async def test_get_event_empty_id(self, settings: Settings) -> None:
        async with _client(lambda r: _json({})) as http:
            with pytest.raises(InputValidationError):
                await TicketmasterProvider(http, settings).get_event("  ")


# ======================================================================
# EventFinderAPIClient
# ======================================================================


class TestEventFinderAPIClient:
    @pytest.mark.asyncio
    async def test_search_events_posts_query(self) -> None:
        seen: list[httpx.Request] = []
        event = make_event("evt-1", "Jazz Night")

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _json({"events": [event.model_dump(mode="json", by_alias=True)]})

        async with _client(handler) as http:
            api = EventFinderAPIClient(http, base_url="http://server.test/")
            events = await api.search_events(EventQuery(latitude=52.37, longitude=4.9, radius=40))

        assert events == [event]
        assert seen[0].method == "POST"
        assert str(seen[0].url) == "http://server.test/api/events"
        assert json.loads(seen[0].content) == {
            "latitude": 52.37,
            "longitude": 4.9,
            "radius": 40.0,
            "unit": "km",
        }

    @pytest.mark.asyncio
    async def test_validation_error_maps_back(self) -> None:
        body = {"error": "validation_error", "detail": "Coordinates out of range"}
        async with _client(lambda r: _json(body, status=400)) as http:
            api = EventFinderAPIClient(http, base_url="http://server.test")
            with pytest.raises(InputValidationError, match="out of range"):
                await api.search("Amsterdam")

    @pytest.mark.asyncio
    async def test_provider_error_maps_back(self) -> None:
        body = {"error": "provider_error", "detail": GENERIC_PROVIDER_MESSAGE}
        async with _client(lambda r: _json(body, status=502)) as http:
            api = EventFinderAPIClient(http, base_url="http://server.test")
            with pytest.raises(ProviderResponseError) as exc_info:
                await api.search_events(EventQuery(latitude=0, longitude=0, radius=5))
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_get_event_404(self) -> None:
        async with _client(lambda r: _json({"detail": "Unknown event"}, status=404)) as http:
            api = EventFinderAPIClient(http, base_url="http://server.test")
            assert await api.get_event("missing") is None

    @pytest.mark.asyncio
    async def test_reverse(self) -> None:
        payload = {"display_name": "Dam, Amsterdam", "lat": 52.3731, "lon": 4.8932}
        async with _client(lambda r: _json(payload)) as http:
            api = EventFinderAPIClient(http, base_url="http://server.test")
            location = await api.reverse(52.3731, 4.8932)
        assert location.display_name == "Dam, Amsterdam"

    @pytest.mark.asyncio
    async def test_unreachable_server(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with _client(handler) as http:
            api = EventFinderAPIClient(http, base_url="http://server.test")
            with pytest.raises(ProviderUnavailableError):
                await api.search("Amsterdam")
