"""Single ordered output channel of a run.

``emit`` is awaited by the producer; with a bounded queue it blocks until the
consumer catches up, so events are never dropped or reordered. ``close``
appends an end marker behind everything already queued; ``abort`` discards
what is queued and ends iteration immediately (client went away).
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Union

from handoffAgent.streaming.events import BaseEvent

LOGGER = logging.getLogger(__name__)

EventCallback = Callable[[BaseEvent], Union[None, Awaitable[None]]]

_END = object()


class EventEmitter:
    """Async event channel.

    Args:
        max_size: Queue capacity, 0 for unbounded
        on_event: Observer called for every event (errors are logged, never raised)
        buffered: Queue events for async iteration; generate-mode runs pass False
    """

    def __init__(self, max_size: int = 0, on_event: Optional[EventCallback] = None, buffered: bool = True):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_size)
        self._on_event = on_event
        self._buffered = buffered
        self._closed = False
        self._aborted = False
        self.events: List[BaseEvent] = []

    @property
    def closed(self) -> bool:
        return self._closed

    async def emit(self, event: BaseEvent) -> None:
        if self._closed:
            LOGGER.debug(f"Dropping {event.type} emitted after close")
            return

        self.events.append(event)
        if self._on_event is not None:
            try:
                result = self._on_event(event)
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception as e:
                LOGGER.error(f"on_event callback failed for {event.type}: {e}")

        if self._buffered:
            await self._queue.put(event)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._buffered:
            await self._queue.put(_END)

    def abort(self) -> None:
        """Stop emission now and drop anything not yet consumed."""
        self._closed = True
        self._aborted = True
        while not self._queue.empty():
            self._queue.get_nowait()
        if self._buffered:
            self._queue.put_nowait(_END)

    def __aiter__(self) -> AsyncIterator[BaseEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[BaseEvent]:
        if not self._buffered:
            raise RuntimeError("EventEmitter was created with buffered=False")
        while True:
            item: Any = await self._queue.get()
            if item is _END:
                return
            yield item


__all__ = ["EventCallback", "EventEmitter"]
