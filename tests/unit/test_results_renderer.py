"""Unit tests for eventfinder.client.results_renderer.ResultsRenderer."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from eventfinder.client.bus import EventBus
from eventfinder.client.distance_annotator import LOCATION_UNKNOWN, DistanceAnnotator
from eventfinder.client.results_renderer import ResultsRenderer
from eventfinder.client.state import AppState
from eventfinder.client.views import CardTarget, ResultsStatus
from eventfinder.models.event import DistanceUnit, EventRecord
from eventfinder.models.notifications import (
    EventsDataLoaded,
    HighlightEventCard,
    HighlightEventMarker,
    LocationSelected,
    RefreshEvents,
)
from eventfinder.providers.event.ticketmaster_provider import TicketmasterProvider
from eventfinder.providers.state.memory_state_store import MemoryStateStore
from eventfinder.rendering.html import CALCULATING_LABEL, EMPTY_RESULTS_TEXT, ERROR_RESULTS_TEXT
from eventfinder.utils.errors import ProviderResponseError
from tests.conftest import MockDeviceLocator, MockEventsProvider, Recorder, make_event, make_settings


def _renderer(
    provider: MockEventsProvider,
    annotator: DistanceAnnotator | None = None,
    query_debounce: float = 0.0,
    pulse_duration: float = 2.0,
    visibility_probe=None,
) -> tuple[ResultsRenderer, EventBus, AppState, Recorder]:
    bus = EventBus()
    state = AppState(MemoryStateStore())
    recorder = Recorder()
    bus.subscribe(EventsDataLoaded, recorder)
    bus.subscribe(HighlightEventMarker, recorder)
    renderer = ResultsRenderer(
        bus,
        state,
        provider,
        annotator=annotator,
        query_debounce=query_debounce,
        pulse_duration=pulse_duration,
        visibility_probe=visibility_probe,
    )
    renderer.attach()
    return renderer, bus, state, recorder


# ======================================================================
# Loading
# ======================================================================


class TestLoading:
    @pytest.mark.asyncio
    async def test_renders_cards_in_provider_order(
        self, mock_events_provider: MockEventsProvider, sample_events: list[EventRecord]
    ) -> None:
        renderer, _, state, recorder = _renderer(mock_events_provider)

        renderer.load(52.3676, 4.9041, 40)
        await renderer.settle()

        view = renderer.view
        assert view.status is ResultsStatus.READY
        assert view.count == 3
        assert [c.event_id for c in view.cards] == ["evt-1", "evt-2", "evt-3"]
        assert state.events == tuple(sample_events)
        assert all('data-event-card' in c.html for c in view.cards)

        loaded = [n for n in recorder.received if isinstance(n, EventsDataLoaded)]
        assert len(loaded) == 1
        assert loaded[0].events == tuple(sample_events)

    @pytest.mark.asyncio
    async def test_query_carries_km_radius(self, mock_events_provider: MockEventsProvider) -> None:
        renderer, *_ = _renderer(mock_events_provider)

        renderer.load(52.3676, 4.9041, 40)
        await renderer.settle()

        query = mock_events_provider.queries[0]
        assert query.unit is DistanceUnit.KM
        assert query.radius == 40
        assert query.to_miles() == 25

    @pytest.mark.asyncio
    async def test_empty_result(self) -> None:
        renderer, _, _, recorder = _renderer(MockEventsProvider(events=[]))

        renderer.load(52.3676, 4.9041, 40)
        await renderer.settle()

        assert renderer.view.status is ResultsStatus.EMPTY
        assert renderer.view.count == 0
        assert renderer.view.message == EMPTY_RESULTS_TEXT
        assert recorder.received == [EventsDataLoaded(events=())]

    @pytest.mark.asyncio
    async def test_provider_error_shows_message_and_publishes_nothing(self) -> None:
        provider = MockEventsProvider(error=ProviderResponseError("HTTP 500", provider_name="ticketmaster"))
        renderer, _, state, recorder = _renderer(provider)
        state.replace_events([make_event("old")])

        renderer.load(52.3676, 4.9041, 40)
        await renderer.settle()

        assert renderer.view.status is ResultsStatus.ERROR
        assert renderer.view.message == ERROR_RESULTS_TEXT
        assert renderer.view.cards == []
        assert recorder.received == []
        assert [e.id for e in state.events] == ["old"]

    @pytest.mark.asyncio
    async def test_unexpected_provider_exception_shows_error(self) -> None:
        provider = MockEventsProvider(error=AttributeError("'list' object has no attribute 'get'"))
        renderer, _, _, recorder = _renderer(provider)

        renderer.load(52.3676, 4.9041, 40)
        await renderer.settle()

        assert renderer.view.status is ResultsStatus.ERROR
        assert renderer.view.message == ERROR_RESULTS_TEXT
        assert recorder.received == []

    @pytest.mark.asyncio
    async def test_malformed_upstream_payload_shows_error(self) -> None:
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json={"_embedded": ["oops"]}))
        async with httpx.AsyncClient(transport=transport) as http:
            provider = TicketmasterProvider(http, make_settings())
            renderer, *_ = _renderer(provider)

            renderer.load(52.37, 4.90, 40)
            await renderer.settle()

        assert renderer.view.status is ResultsStatus.ERROR
        assert renderer.view.message == ERROR_RESULTS_TEXT
        assert renderer.view.count == 0

    @pytest.mark.asyncio
    async def test_cards_cleared_while_loading(self, sample_events: list[EventRecord]) -> None:
        provider = MockEventsProvider(
            responses=[(0, sample_events), (0.05, [make_event("late")])]
        )
        renderer, *_ = _renderer(provider)
        renderer.load(52.3676, 4.9041, 40)
        await renderer.settle()
        assert renderer.view.count == 3

        renderer.load(52.3676, 4.9041, 20)
        await asyncio.sleep(0.01)
        assert renderer.view.status is ResultsStatus.LOADING
        assert renderer.view.cards == []

        await renderer.settle()
        assert [c.event_id for c in renderer.view.cards] == ["late"]

    @pytest.mark.asyncio
    async def test_two_selections_in_debounce_window_query_once(
        self, mock_events_provider: MockEventsProvider
    ) -> None:
        renderer, bus, *_ = _renderer(mock_events_provider, query_debounce=0.02)

        await bus.publish(LocationSelected(lat=52.37, lon=4.89, name="Amsterdam", radius=40))
        await bus.publish(LocationSelected(lat=52.09, lon=5.12, name="Utrecht", radius=40))
        await renderer.settle()

        assert len(mock_events_provider.queries) == 1
        assert mock_events_provider.queries[0].latitude == 52.09

    @pytest.mark.asyncio
    async def test_refresh_events_triggers_query(self, mock_events_provider: MockEventsProvider) -> None:
        renderer, bus, *_ = _renderer(mock_events_provider)

        await bus.publish(RefreshEvents(lat=52.37, lon=4.89, name="Amsterdam", radius=15))
        await renderer.settle()

        assert mock_events_provider.queries[0].radius == 15

    @pytest.mark.asyncio
    async def test_stale_response_discarded(self) -> None:
        provider = MockEventsProvider(
            responses=[(0.05, [make_event("stale")]), (0, [make_event("fresh")])]
        )
        renderer, _, state, recorder = _renderer(provider)

        renderer.load(1.0, 1.0, 40)
        await asyncio.sleep(0.01)
        renderer.load(2.0, 2.0, 40)
        await renderer.settle()

        assert len(provider.queries) == 2
        assert [c.event_id for c in renderer.view.cards] == ["fresh"]
        assert [e.id for e in state.events] == ["fresh"]
        assert len(recorder.received) == 1


# ======================================================================
# Distance annotation
# ======================================================================


class TestAnnotation:
    @pytest.mark.asyncio
    async def test_cards_labelled_after_render(self, sample_events: list[EventRecord]) -> None:
        annotator = DistanceAnnotator(MockDeviceLocator(position=(52.3622, 4.8835)))
        renderer, *_ = _renderer(MockEventsProvider(events=sample_events), annotator=annotator)

        renderer.load(52.3676, 4.9041, 40)
        await renderer.settle()

        labels = {c.event_id: c.distance_label for c in renderer.view.cards}
        assert labels["evt-1"] == "0 m away"
        assert labels["evt-2"].endswith("km away")
        assert labels["evt-3"] == LOCATION_UNKNOWN
        assert "0 m away" in renderer.view.card("evt-1").html

    @pytest.mark.asyncio
    async def test_without_annotator_labels_stay_calculating(
        self, mock_events_provider: MockEventsProvider
    ) -> None:
        renderer, *_ = _renderer(mock_events_provider)

        renderer.load(52.3676, 4.9041, 40)
        await renderer.settle()

        assert {c.distance_label for c in renderer.view.cards} == {CALCULATING_LABEL}


# ======================================================================
# Card interaction
# ======================================================================


class TestCardInteraction:
    @staticmethod
    async def _loaded(provider: MockEventsProvider, **kwargs):
        renderer, bus, state, recorder = _renderer(provider, **kwargs)
        renderer.load(52.3676, 4.9041, 40)
        await renderer.settle()
        recorder.received.clear()
        return renderer, bus, recorder

    @pytest.mark.asyncio
    async def test_single_open_policy(self, mock_events_provider: MockEventsProvider) -> None:
        renderer, _, recorder = await self._loaded(mock_events_provider)

        await renderer.click_card("evt-1")
        assert renderer.view.expanded_ids == ["evt-1"]

        await renderer.click_card("evt-2")
        assert renderer.view.expanded_ids == ["evt-2"]

        await renderer.click_card("evt-2")
        assert renderer.view.expanded_ids == []

        assert [n.event_id for n in recorder.received] == ["evt-1", "evt-2", "evt-2"]
        assert all(isinstance(n, HighlightEventMarker) for n in recorder.received)

    @pytest.mark.asyncio
    async def test_expanding_scrolls_unless_visible(self, mock_events_provider: MockEventsProvider) -> None:
        renderer, _, _ = await self._loaded(mock_events_provider)
        await renderer.click_card("evt-2")
        assert renderer.view.scroll_target == "evt-2"

        visible, _, _ = await self._loaded(
            MockEventsProvider(events=mock_events_provider.events),
            visibility_probe=lambda _event_id: True,
        )
        await visible.click_card("evt-2")
        assert visible.view.scroll_target is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("target", [CardTarget.LINK, CardTarget.BUTTON])
    async def test_clicks_on_links_and_buttons_ignored(
        self, mock_events_provider: MockEventsProvider, target: CardTarget
    ) -> None:
        renderer, _, recorder = await self._loaded(mock_events_provider)

        await renderer.click_card("evt-1", target)

        assert renderer.view.expanded_ids == []
        assert recorder.received == []

    @pytest.mark.asyncio
    async def test_unknown_card(self, mock_events_provider: MockEventsProvider) -> None:
        renderer, _, recorder = await self._loaded(mock_events_provider)
        await renderer.click_card("missing")
        assert recorder.received == []

    @pytest.mark.asyncio
    async def test_highlight_from_marker_pulses_card(self, mock_events_provider: MockEventsProvider) -> None:
        renderer, bus, _ = await self._loaded(mock_events_provider, pulse_duration=0.02)

        await bus.publish(HighlightEventCard(event_id="evt-2"))

        card = renderer.view.card("evt-2")
        assert card.highlighted is True
        assert card.pulsing is True
        assert renderer.view.card("evt-1").highlighted is False
        assert renderer.view.scroll_target == "evt-2"

        await asyncio.sleep(0.05)
        assert card.pulsing is False
        assert card.highlighted is True
