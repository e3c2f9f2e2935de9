"""Typed publish/subscribe bus for the client components.

Components never call each other directly; they publish notification models
(see ``eventfinder.models.notifications``) and subscribe to the types they
care about:

    LocationSelector ──LocationSelected──→ ResultsRenderer, MapMarkerLayer
    ResultsRenderer  ──EventsDataLoaded──→ MapMarkerLayer
    ResultsRenderer  ──HighlightEventMarker──→ MapMarkerLayer
    MapMarkerLayer   ──HighlightEventCard──→ ResultsRenderer

Handlers are called in subscription order.  Both sync and async handlers are
supported.  A handler that raises is logged and the remaining handlers
still run.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import structlog

from eventfinder.models.notifications import Notification
from eventfinder.utils.logging import get_logger


class EventBus:
    """In-process notification bus keyed by notification class."""

    def __init__(self) -> None:
        self._handlers: dict[type[Notification], list[Callable]] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def subscribe(self, notification_type: type[Notification], handler: Callable) -> None:
        """Register *handler* for *notification_type*.

        Parameters
        ----------
        notification_type:
            The notification model class to listen for.  Exact-type match:
            subscribing to the base ``Notification`` does not receive
            subclasses.
        handler:
            A sync or async callable taking the notification instance.
            Registering the same handler twice has no effect.
        """
        handlers = self._handlers.setdefault(notification_type, [])
        if handler not in handlers:
            handlers.append(handler)
            self._logger.debug(
                "handler_subscribed",
                notification=notification_type.wire_name,
                total_handlers=len(handlers),
            )

    def unsubscribe(self, notification_type: type[Notification], handler: Callable) -> None:
        handlers = self._handlers.get(notification_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def handler_count(self, notification_type: type[Notification]) -> int:
        return len(self._handlers.get(notification_type, []))

    async def publish(self, notification: Notification) -> None:
        """Deliver *notification* to every subscriber of its type, in order."""
        handlers = list(self._handlers.get(type(notification), []))
        self._logger.debug(
            "notification_published",
            notification=notification.wire_name,
            handlers=len(handlers),
        )
        for handler in handlers:
            try:
                result = handler(notification)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                self._logger.warning(
                    "notification_handler_error",
                    notification=notification.wire_name,
                    error=str(exc),
                    handler=getattr(handler, "__qualname__", repr(handler)),
                )
