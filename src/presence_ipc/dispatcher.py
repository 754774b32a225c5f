"""Event dispatcher: one-shot delivery of named events to listeners.

The session's read path feeds events in with ``emit``; callers register
interest with ``listen``. Each registration runs as its own task and fires
at most once.

Events are queued per kind, so a listener only ever takes items of the kind
it asked for. An item with no listener yet stays queued until one arrives;
two listeners on the same kind receive distinct items in registration
order. At most MAX_PENDING_PER_KIND undelivered items are kept per kind;
beyond that the oldest is dropped.

Stopping only affects listeners that are still waiting: they return
without firing. A listener whose callback is already running finishes it.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable

from .protocol import EventKind, IncomingCommand

logger = logging.getLogger(__name__)

# Plain or async callable receiving the event's incoming command
EventCallback = Callable[[IncomingCommand], Awaitable[None] | None]

MAX_PENDING_PER_KIND = 64


class EventDispatcher:
    """Kind-indexed event queues with one-shot listener tasks."""

    def __init__(self, max_pending: int = MAX_PENDING_PER_KIND) -> None:
        self.max_pending = max_pending
        self._queues: dict[EventKind, asyncio.Queue[IncomingCommand]] = {}
        # Workers still waiting for their event; only these are stopped
        self._waiting: set[asyncio.Task[None]] = set()
        self._stopping = asyncio.Event()

    @property
    def is_stopped(self) -> bool:
        return self._stopping.is_set()

    @property
    def listener_count(self) -> int:
        """Number of registrations that have not fired yet."""
        return len(self._waiting)

    def pending(self, kind: EventKind) -> int:
        """Number of queued events of ``kind`` waiting for a listener."""
        queue = self._queues.get(kind)
        return queue.qsize() if queue else 0

    def emit(self, kind: EventKind, message: IncomingCommand) -> None:
        """Queue an event. Never blocks and never raises."""
        if self.is_stopped:
            logger.debug(f"Dropping {kind.value} event: dispatcher stopped")
            return
        queue = self._queue(kind)
        if queue.full():
            queue.get_nowait()
            logger.debug(f"Dropped oldest unclaimed {kind.value} event (limit {self.max_pending})")
        queue.put_nowait(message)

    def listen(self, kind: EventKind, callback: EventCallback) -> asyncio.Task[None]:
        """Register a one-shot listener and return its worker task.

        The callback runs once with the next event of ``kind``, then the
        worker finishes. If the dispatcher is stopped first, the worker
        finishes without calling it. Must be called from a running event
        loop.

        Raises:
            RuntimeError: If the dispatcher has been stopped
        """
        if self.is_stopped:
            raise RuntimeError("Dispatcher is stopped")

        task = asyncio.create_task(
            self._deliver_once(kind, callback), name=f"listen-{kind.value}"
        )
        self._waiting.add(task)
        task.add_done_callback(self._waiting.discard)
        return task

    async def stop(self) -> None:
        """Stop delivery. Waiting listeners exit without firing."""
        if self.is_stopped:
            return
        self._stopping.set()

        waiting = [task for task in self._waiting if task is not asyncio.current_task()]
        if waiting:
            await asyncio.gather(*waiting, return_exceptions=True)

        self._queues.clear()
        logger.debug(f"Dispatcher stopped ({len(waiting)} waiting listeners released)")

    def _queue(self, kind: EventKind) -> asyncio.Queue[IncomingCommand]:
        queue = self._queues.get(kind)
        if queue is None:
            queue = self._queues[kind] = asyncio.Queue(maxsize=self.max_pending)
        return queue

    async def _take(self, kind: EventKind) -> IncomingCommand | None:
        """Next event of ``kind``, or None once the dispatcher stops."""
        getter = asyncio.ensure_future(self._queue(kind).get())
        stopping = asyncio.ensure_future(self._stopping.wait())
        try:
            await asyncio.wait({getter, stopping}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stopping.cancel()
            if not getter.done():
                getter.cancel()
        if self.is_stopped:
            return None
        return getter.result()

    async def _deliver_once(self, kind: EventKind, callback: EventCallback) -> None:
        message = await self._take(kind)
        current = asyncio.current_task()
        if current is not None:
            self._waiting.discard(current)
        if message is None:
            return

        try:
            result = callback(message)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(f"Error in listener for {kind.value}")
