"""Unit tests for the one-shot event dispatcher."""

import asyncio
import logging

import pytest

from presence_ipc.dispatcher import EventDispatcher
from presence_ipc.protocol import EventKind, IncomingCommand


def event(kind: EventKind, **data) -> IncomingCommand:
    return IncomingCommand(command="DISPATCH", nonce=0, data=data, event_tag=kind)


async def settle() -> None:
    """Let pending listener tasks run."""
    for _ in range(5):
        await asyncio.sleep(0)


class TestDelivery:
    """Listeners receive events of their kind."""

    @pytest.mark.asyncio
    async def test_listener_receives_event(self) -> None:
        """A listener fires with the emitted payload."""
        dispatcher = EventDispatcher()
        received = []

        task = dispatcher.listen(EventKind.READY, received.append)
        dispatcher.emit(EventKind.READY, event(EventKind.READY, user="42"))
        await asyncio.wait_for(task, 1)

        assert received == [event(EventKind.READY, user="42")]

    @pytest.mark.asyncio
    async def test_buffered_before_listen(self) -> None:
        """Events emitted before any listener are kept for the next one."""
        dispatcher = EventDispatcher()
        dispatcher.emit(EventKind.READY, event(EventKind.READY))
        assert dispatcher.pending(EventKind.READY) == 1

        received = []
        await asyncio.wait_for(dispatcher.listen(EventKind.READY, received.append), 1)

        assert len(received) == 1
        assert dispatcher.pending(EventKind.READY) == 0

    @pytest.mark.asyncio
    async def test_async_callback(self) -> None:
        """Coroutine callbacks are awaited."""
        dispatcher = EventDispatcher()
        received = []

        async def callback(message):
            await asyncio.sleep(0)
            received.append(message)

        task = dispatcher.listen(EventKind.ERROR, callback)
        dispatcher.emit(EventKind.ERROR, event(EventKind.ERROR))
        await asyncio.wait_for(task, 1)

        assert len(received) == 1


class TestOneShot:
    """A registration fires at most once."""

    @pytest.mark.asyncio
    async def test_fires_once(self) -> None:
        """Later events of the same kind are not delivered to a fired listener."""
        dispatcher = EventDispatcher()
        received = []

        task = dispatcher.listen(EventKind.MESSAGE_CREATE, received.append)
        dispatcher.emit(EventKind.MESSAGE_CREATE, event(EventKind.MESSAGE_CREATE, n=1))
        await asyncio.wait_for(task, 1)
        dispatcher.emit(EventKind.MESSAGE_CREATE, event(EventKind.MESSAGE_CREATE, n=2))
        await settle()

        assert [m.data["n"] for m in received] == [1]
        assert dispatcher.pending(EventKind.MESSAGE_CREATE) == 1
        assert dispatcher.listener_count == 0

    @pytest.mark.asyncio
    async def test_same_kind_listeners_get_distinct_items(self) -> None:
        """Two listeners on one kind each get one item, in registration order."""
        dispatcher = EventDispatcher()
        first, second = [], []

        tasks = [
            dispatcher.listen(EventKind.MESSAGE_CREATE, first.append),
            dispatcher.listen(EventKind.MESSAGE_CREATE, second.append),
        ]
        await settle()
        dispatcher.emit(EventKind.MESSAGE_CREATE, event(EventKind.MESSAGE_CREATE, n=1))
        dispatcher.emit(EventKind.MESSAGE_CREATE, event(EventKind.MESSAGE_CREATE, n=2))
        await asyncio.wait_for(asyncio.gather(*tasks), 1)

        assert [m.data["n"] for m in first] == [1]
        assert [m.data["n"] for m in second] == [2]


class TestKindIsolation:
    """Listeners never consume other kinds' events."""

    @pytest.mark.asyncio
    async def test_non_matching_event_not_consumed(self) -> None:
        """An event for kind B is left for B's listener even if A's listener is waiting."""
        dispatcher = EventDispatcher()
        joins, messages = [], []

        join_task = dispatcher.listen(EventKind.ACTIVITY_JOIN, joins.append)
        message_task = dispatcher.listen(EventKind.MESSAGE_CREATE, messages.append)
        await settle()

        dispatcher.emit(EventKind.MESSAGE_CREATE, event(EventKind.MESSAGE_CREATE))
        dispatcher.emit(EventKind.ACTIVITY_JOIN, event(EventKind.ACTIVITY_JOIN))
        await asyncio.wait_for(asyncio.gather(join_task, message_task), 1)

        assert [m.event_tag for m in joins] == [EventKind.ACTIVITY_JOIN]
        assert [m.event_tag for m in messages] == [EventKind.MESSAGE_CREATE]

    @pytest.mark.asyncio
    async def test_unmatched_listener_keeps_waiting(self) -> None:
        """A listener stays pending while only other kinds arrive."""
        dispatcher = EventDispatcher()
        received = []

        task = dispatcher.listen(EventKind.ACTIVITY_JOIN, received.append)
        dispatcher.emit(EventKind.READY, event(EventKind.READY))
        await settle()

        assert not task.done()
        assert received == []
        assert dispatcher.pending(EventKind.READY) == 1
        await dispatcher.stop()


class TestErrors:
    """Listener failures are contained."""

    @pytest.mark.asyncio
    async def test_callback_exception_logged(self, caplog) -> None:
        """A raising callback is logged and the task completes normally."""
        dispatcher = EventDispatcher()

        def callback(message):
            raise RuntimeError("boom")

        task = dispatcher.listen(EventKind.ERROR, callback)
        with caplog.at_level(logging.ERROR, logger="presence_ipc.dispatcher"):
            dispatcher.emit(EventKind.ERROR, event(EventKind.ERROR))
            await asyncio.wait_for(task, 1)

        assert task.exception() is None
        assert "Error in listener for ERROR" in caplog.text


class TestStop:
    """Shutdown semantics."""

    @pytest.mark.asyncio
    async def test_stop_releases_waiting_listeners(self) -> None:
        """Outstanding listeners exit normally without firing."""
        dispatcher = EventDispatcher()
        received = []

        task = dispatcher.listen(EventKind.ACTIVITY_JOIN, received.append)
        await settle()
        await dispatcher.stop()

        assert task.done()
        assert not task.cancelled()
        assert await task is None
        assert received == []
        assert dispatcher.listener_count == 0

    @pytest.mark.asyncio
    async def test_emit_after_stop_is_dropped(self) -> None:
        """emit() after stop() neither raises nor queues."""
        dispatcher = EventDispatcher()
        await dispatcher.stop()

        dispatcher.emit(EventKind.READY, event(EventKind.READY))

        assert dispatcher.pending(EventKind.READY) == 0

    @pytest.mark.asyncio
    async def test_listen_after_stop(self) -> None:
        """Registering on a stopped dispatcher is an error."""
        dispatcher = EventDispatcher()
        await dispatcher.stop()

        with pytest.raises(RuntimeError):
            dispatcher.listen(EventKind.READY, lambda message: None)

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self) -> None:
        """stop() can be called repeatedly."""
        dispatcher = EventDispatcher()
        await dispatcher.stop()
        await dispatcher.stop()

        assert dispatcher.is_stopped

    @pytest.mark.asyncio
    async def test_stop_from_inside_callback(self) -> None:
        """A callback may stop the dispatcher that is delivering to it."""
        dispatcher = EventDispatcher()
        other = dispatcher.listen(EventKind.ACTIVITY_JOIN, lambda message: None)

        async def callback(message):
            await dispatcher.stop()

        task = dispatcher.listen(EventKind.READY, callback)
        dispatcher.emit(EventKind.READY, event(EventKind.READY))
        await asyncio.wait_for(task, 1)

        assert dispatcher.is_stopped
        assert other.done()
        assert not other.cancelled()

    @pytest.mark.asyncio
    async def test_stop_lets_running_callback_finish(self) -> None:
        """A listener that already took its event is not interrupted by stop()."""
        dispatcher = EventDispatcher()
        started = asyncio.Event()
        release = asyncio.Event()
        finished = []

        async def callback(message):
            started.set()
            await release.wait()
            finished.append(message)

        task = dispatcher.listen(EventKind.READY, callback)
        dispatcher.emit(EventKind.READY, event(EventKind.READY))
        await asyncio.wait_for(started.wait(), 1)

        await dispatcher.stop()
        assert not task.done()
        assert dispatcher.listener_count == 0

        release.set()
        await asyncio.wait_for(task, 1)

        assert not task.cancelled()
        assert finished == [event(EventKind.READY)]


class TestRetention:
    """Unclaimed events are bounded per kind."""

    @pytest.mark.asyncio
    async def test_oldest_dropped_at_limit(self) -> None:
        """Past the limit the oldest unclaimed event is discarded."""
        dispatcher = EventDispatcher(max_pending=2)
        for n in range(3):
            dispatcher.emit(EventKind.MESSAGE_CREATE, event(EventKind.MESSAGE_CREATE, n=n))

        assert dispatcher.pending(EventKind.MESSAGE_CREATE) == 2

        received = []
        await asyncio.wait_for(dispatcher.listen(EventKind.MESSAGE_CREATE, received.append), 1)

        assert [m.data["n"] for m in received] == [1]

    @pytest.mark.asyncio
    async def test_limit_is_per_kind(self) -> None:
        """Filling one kind does not evict another kind's events."""
        dispatcher = EventDispatcher(max_pending=1)
        dispatcher.emit(EventKind.READY, event(EventKind.READY))
        dispatcher.emit(EventKind.ERROR, event(EventKind.ERROR))
        dispatcher.emit(EventKind.ERROR, event(EventKind.ERROR))

        assert dispatcher.pending(EventKind.READY) == 1
        assert dispatcher.pending(EventKind.ERROR) == 1
