"""Results list: loads events for the selected location and renders cards.

Reacts to ``LocationSelected`` and ``RefreshEvents`` by scheduling a query
(debounced, so a burst of selections loads once, for the last one).  When a
query starts the old cards are cleared at once and the view shows LOADING.
Every query carries a sequence token; a response that is no longer the
latest is logged and dropped.

On success the event set in ``AppState`` is replaced, the cards and count
are rebuilt in provider order, ``EventsDataLoaded`` is published (also for
an empty set) and the distance annotator runs.  On failure the view shows
the error text and nothing is published.

Card interaction follows a single-open policy: expanding one card collapses
every other.  ``HighlightEventCard`` (a marker click) highlights and pulses
the matching card.
"""

from __future__ import annotations

import asyncio
from typing import Callable

import structlog
from pydantic import ValidationError

from eventfinder.client.bus import EventBus
from eventfinder.client.distance_annotator import DistanceAnnotator
from eventfinder.client.state import AppState
from eventfinder.client.views import CardTarget, EventCard, ResultsStatus, ResultsView
from eventfinder.interfaces.event_provider import IEventProvider
from eventfinder.models.event import DistanceUnit, EventQuery, EventRecord
from eventfinder.models.notifications import (
    EventsDataLoaded,
    HighlightEventCard,
    HighlightEventMarker,
    LocationSelected,
    RefreshEvents,
)
from eventfinder.rendering.html import (
    EMPTY_RESULTS_TEXT,
    ERROR_RESULTS_TEXT,
    render_event_card,
)
from eventfinder.utils.concurrency import Debouncer, RequestSequencer
from eventfinder.utils.errors import EventFinderError, RenderError
from eventfinder.utils.logging import get_logger


class ResultsRenderer:
    """Owns the ``ResultsView`` and the current event set.

    Parameters
    ----------
    bus:
        Subscribed to for location changes; published to with loaded events.
    state:
        The event set is replaced here on every successful query.
    events_provider:
        Where events are fetched from.
    annotator:
        Distance labelling run after each render; optional.
    query_debounce:
        Quiet period in seconds before a query runs.
    pulse_duration:
        Seconds a highlighted card keeps its pulse.
    visibility_probe:
        Returns ``True`` when a card is already fully visible, in which case
        expanding it does not set a scroll target.
    """

    def __init__(
        self,
        bus: EventBus,
        state: AppState,
        events_provider: IEventProvider,
        annotator: DistanceAnnotator | None = None,
        query_debounce: float = 0.3,
        pulse_duration: float = 2.0,
        visibility_probe: Callable[[str], bool] | None = None,
    ) -> None:
        self._bus = bus
        self._state = state
        self._provider = events_provider
        self._annotator = annotator
        self._pulse_duration = pulse_duration
        self._is_visible = visibility_probe or (lambda _event_id: False)
        self._sequencer = RequestSequencer()
        self._debouncer = Debouncer(query_debounce, self._run_query, name="events_query")
        self._pulse_handles: dict[str, asyncio.TimerHandle] = {}
        self.view = ResultsView()
        self._logger: structlog.BoundLogger = get_logger(__name__)

    def attach(self) -> None:
        """Subscribe to the notifications this component reacts to."""
        self._bus.subscribe(LocationSelected, self._on_location)
        self._bus.subscribe(RefreshEvents, self._on_location)
        self._bus.subscribe(HighlightEventCard, self._on_highlight_card)

    # -- Loading ---------------------------------------------------------------

    def load(self, lat: float, lon: float, radius: int) -> None:
        """Schedule a query; supersedes any query still waiting to run."""
        self._debouncer.trigger(lat, lon, radius)

    async def settle(self) -> None:
        """Wait for scheduled and running queries (and their annotation)."""
        await self._debouncer.flush()

    async def _on_location(self, notification: LocationSelected | RefreshEvents) -> None:
        self.load(notification.lat, notification.lon, notification.radius)

    async def _run_query(self, lat: float, lon: float, radius: int) -> None:
        token = self._sequencer.issue()
        self._show_loading()

        try:
            query = EventQuery(latitude=lat, longitude=lon, radius=radius, unit=DistanceUnit.KM)
            events = await self._provider.search_events(query)
        except (EventFinderError, ValidationError) as exc:
            if not self._sequencer.is_current(token):
                self._logger.info("stale_response_discarded", token=token, outcome="error")
                return
            self._logger.warning("events_load_failed", lat=lat, lon=lon, radius=radius, error=str(exc))
            self._show_error()
            return
        except Exception as exc:
            if not self._sequencer.is_current(token):
                self._logger.info("stale_response_discarded", token=token, outcome="error")
                return
            self._logger.error(
                "events_load_crashed",
                lat=lat,
                lon=lon,
                radius=radius,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            self._show_error()
            return

        if not self._sequencer.is_current(token):
            self._logger.info(
                "stale_response_discarded",
                token=token,
                latest=self._sequencer.latest,
                results=len(events),
            )
            return

        self._state.replace_events(events)
        self._render(self._state.events)
        self._logger.info("events_loaded", lat=lat, lon=lon, radius=radius, count=len(events))

        await self._bus.publish(EventsDataLoaded(events=self._state.events))

        if self._annotator is not None and self.view.cards:
            cards = self.view.cards
            await self._annotator.annotate(cards)
            for card in cards:
                card.html = self._card_html(card.event, card.distance_label)

    # -- Rendering -------------------------------------------------------------

    def _show_loading(self) -> None:
        self._cancel_pulses()
        self.view.status = ResultsStatus.LOADING
        self.view.cards = []
        self.view.count = 0
        self.view.message = None
        self.view.scroll_target = None

    def _show_error(self) -> None:
        self.view.status = ResultsStatus.ERROR
        self.view.cards = []
        self.view.count = 0
        self.view.message = ERROR_RESULTS_TEXT

    def _render(self, events: tuple[EventRecord, ...]) -> None:
        cards: list[EventCard] = []
        for event in events:
            card = EventCard(event=event)
            card.html = self._card_html(event, card.distance_label)
            cards.append(card)
        self.view.cards = cards
        self.view.count = len(cards)
        if cards:
            self.view.status = ResultsStatus.READY
            self.view.message = None
        else:
            self.view.status = ResultsStatus.EMPTY
            self.view.message = EMPTY_RESULTS_TEXT

    def _card_html(self, event: EventRecord, distance_label: str) -> str:
        try:
            return render_event_card(event, distance_label)
        except RenderError as exc:
            self._logger.warning("event_card_render_failed", event_id=event.id, error=str(exc))
            return ""

    # -- Card interaction ------------------------------------------------------

    async def click_card(self, event_id: str, target: CardTarget = CardTarget.BODY) -> None:
        """Handle a click on a card.

        Clicks on links and buttons inside a card are left to those elements.
        A body click toggles the card (collapsing any other) and asks the map
        to focus the event's marker.
        """
        if target is not CardTarget.BODY:
            return
        card = self.view.card(event_id)
        if card is None:
            self._logger.warning("card_not_found", event_id=event_id)
            return

        if card.expanded:
            card.expanded = False
        else:
            for other in self.view.cards:
                other.expanded = False
            card.expanded = True
            if not self._is_visible(event_id):
                self.view.scroll_target = event_id

        await self._bus.publish(HighlightEventMarker(event_id=event_id))

    def _on_highlight_card(self, notification: HighlightEventCard) -> None:
        card = self.view.card(notification.event_id)
        if card is None:
            self._logger.warning("card_not_found", event_id=notification.event_id)
            return
        for other in self.view.cards:
            other.highlighted = other is card
        card.pulsing = True
        self.view.scroll_target = card.event_id

        previous = self._pulse_handles.pop(card.event_id, None)
        if previous is not None:
            previous.cancel()
        self._pulse_handles[card.event_id] = asyncio.get_running_loop().call_later(
            self._pulse_duration, self._end_pulse, card
        )

    def _end_pulse(self, card: EventCard) -> None:
        card.pulsing = False
        self._pulse_handles.pop(card.event_id, None)

    def _cancel_pulses(self) -> None:
        for handle in self._pulse_handles.values():
            handle.cancel()
        self._pulse_handles.clear()
