"""Timing and ordering primitives for the single-threaded client.

Two patterns are exposed:

1. **Debouncer** -- delays an async call until input has been quiet for a
   fixed interval.  Every :meth:`Debouncer.trigger` restarts the waiting
   period, so a burst of triggers collapses to one call carrying the last
   arguments.

2. **RequestSequencer** -- tags outgoing requests with a monotonically
   increasing token.  Only the response to the most recently issued token
   may update state; anything older is stale and must be dropped.

Both assume they are driven from a single asyncio event loop and need no
locks.
"""

from __future__ import annotations

import asyncio
import itertools
from typing import Any, Awaitable, Callable

import structlog

from eventfinder.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


class Debouncer:
    """Run *callback* once input has been quiet for *delay* seconds.

    Only the waiting period is cancelled by a new trigger.  A call that has
    already started runs to completion; callers that care about stale
    results pair this with a :class:`RequestSequencer`.

    Parameters
    ----------
    delay:
        Quiet period in seconds.  ``0`` still defers to the next loop
        iteration, so triggers issued in the same tick still collapse.
    callback:
        Async callable invoked with the arguments of the last trigger.
    name:
        Label used in log lines.
    """

    def __init__(
        self,
        delay: float,
        callback: Callable[..., Awaitable[Any]],
        name: str = "debouncer",
    ) -> None:
        self._delay = max(0.0, delay)
        self._callback = callback
        self._name = name
        self._timer: asyncio.Task | None = None
        self._running: set[asyncio.Task] = set()

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def waiting(self) -> bool:
        """``True`` while the quiet period of the last trigger is running."""
        return self._timer is not None and not self._timer.done()

    @property
    def pending(self) -> bool:
        """``True`` while a call is scheduled or still running."""
        return self.waiting or bool(self._running)

    def trigger(self, *args: Any, **kwargs: Any) -> None:
        """Restart the quiet period; the call will carry these arguments."""
        if self.waiting:
            self._timer.cancel()
            _logger.debug("debounce_superseded", name=self._name)
        self._timer = asyncio.get_running_loop().create_task(
            self._wait_then_call(args, kwargs)
        )

    def cancel(self) -> None:
        """Drop the scheduled call, if it has not started yet."""
        if self.waiting:
            self._timer.cancel()
        self._timer = None

    async def flush(self) -> None:
        """Wait until nothing is scheduled or running.

        Loops because a running call may itself trigger again.
        """
        while self.pending:
            tasks = set(self._running)
            if self.waiting:
                tasks.add(self._timer)
            await asyncio.wait(tasks)

    async def _wait_then_call(self, args: tuple, kwargs: dict) -> None:
        await asyncio.sleep(self._delay)
        task = asyncio.get_running_loop().create_task(self._call(args, kwargs))
        self._running.add(task)
        task.add_done_callback(self._running.discard)

    async def _call(self, args: tuple, kwargs: dict) -> None:
        try:
            await self._callback(*args, **kwargs)
        except Exception as exc:
            # Same policy as bus handlers: log and keep the loop alive.
            _logger.warning(
                "debounced_call_failed",
                name=self._name,
                error=str(exc),
                error_type=type(exc).__name__,
            )


class RequestSequencer:
    """Issues monotonically increasing request tokens.

    Usage::

        token = sequencer.issue()
        result = await fetch(...)
        if not sequencer.is_current(token):
            return  # a newer request was issued meanwhile
    """

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._latest = 0

    @property
    def latest(self) -> int:
        return self._latest

    def issue(self) -> int:
        self._latest = next(self._counter)
        return self._latest

    def is_current(self, token: int) -> bool:
        return token == self._latest
