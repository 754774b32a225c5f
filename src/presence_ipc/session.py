"""IPC session with the desktop service.

State machine:

    UNOPENED --open()--> OPENED --connect()+READY--> CONNECTED
        |                   |                           |
        +-------------------+------disconnect()---------+--> DISCONNECTED

DISCONNECTED is terminal; build a new Session to try again.

Every write is a transaction: send one frame, then read exactly one reply
frame and act on it before returning:

- Incoming command with an event tag -> queued on the dispatcher
  (READY also marks the session connected)
- Critical error -> CriticalFailure raised to the caller of the write
- Empty frame on the PING opcode -> an Empty PONG is sent through the same
  path before the original write returns
- Anything else -> ignored

Replies are correlated to writes purely by this ordering; nonces are not
matched.
"""

from __future__ import annotations

import asyncio
import logging
import os
import uuid
from collections.abc import Mapping
from enum import Enum
from typing import Any

from .activity import Activity
from .config import ClientConfig
from .dispatcher import EventCallback, EventDispatcher
from .errors import (
    AlreadyConnected,
    ConnectionFailed,
    CriticalFailure,
    ListenWithoutConnection,
    ReadFailed,
    WriteFailed,
)
from .protocol import (
    CriticalError,
    Empty,
    EventKind,
    Frame,
    Handshake,
    IncomingCommand,
    Opcode,
    OutgoingCommand,
    WireMessage,
)
from .transport import Transport, TransportLocator, select_locator

logger = logging.getLogger(__name__)

SET_ACTIVITY = "SET_ACTIVITY"

_UINT64_MASK = (1 << 64) - 1


class SessionState(str, Enum):
    """Session lifecycle."""

    UNOPENED = "unopened"
    OPENED = "opened"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


def new_nonce() -> int:
    """Random signed 64-bit nonce (low 64 bits of a UUID4)."""
    value = uuid.uuid4().int & _UINT64_MASK
    return value - (1 << 64) if value >= (1 << 63) else value


class Session:
    """A single client session over one local transport.

    Usage:
        async with Session("123456") as session:
            await session.set_activity(Activity().set_state("Idle"))

    Or step by step:
        session = Session(ClientConfig(client_id="123456"))
        await session.open()
        await session.connect()
        ...
        await session.disconnect()
    """

    def __init__(
        self,
        config: ClientConfig | str,
        locator: TransportLocator | None = None,
        dispatcher: EventDispatcher | None = None,
    ):
        if isinstance(config, str):
            config = ClientConfig(client_id=config)
        self.config = config
        self._locator = locator or select_locator(config)
        self._dispatcher = dispatcher or EventDispatcher()
        self._transport: Transport | None = None
        self._state = SessionState.UNOPENED
        self._io_lock = asyncio.Lock()

    @property
    def client_id(self) -> str:
        return self.config.client_id

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == SessionState.CONNECTED

    @property
    def dispatcher(self) -> EventDispatcher:
        return self._dispatcher

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def open(self) -> None:
        """Locate and open the service endpoint.

        No-op once a transport has been opened (or the session has ended).

        Raises:
            TransportOpenFailed: If no endpoint accepts a connection
        """
        if self._state != SessionState.UNOPENED:
            return

        self._transport = await self._locator.open()
        self._state = SessionState.OPENED

    async def connect(self) -> None:
        """Send the handshake and read the service's reply.

        The session becomes connected only if the reply is the READY event.

        Raises:
            ConnectionFailed: If no transport is open
            AlreadyConnected: If the handshake already succeeded
            CriticalFailure: If the service rejects the handshake
        """
        if self._transport is None:
            raise ConnectionFailed("There is no open transport; call open() first")
        if self._state == SessionState.CONNECTED:
            raise AlreadyConnected("Already connected")

        handshake = Handshake(
            protocol_version=self.config.protocol_version,
            client_id=self.config.client_id,
        )
        await self.transact(Opcode.HANDSHAKE, handshake)

        if not self.is_connected:
            logger.warning("Handshake reply was not READY; session is not connected")

    async def disconnect(self) -> None:
        """Send the close notice and end the session.

        The transport is closed and waiting listeners are released even if
        sending the notice fails. Calling this again is a no-op.
        """
        if self._state == SessionState.DISCONNECTED:
            return

        try:
            if self._transport is not None:
                async with self._io_lock:
                    try:
                        await self._transact(Opcode.CLOSE, Empty())
                    except ReadFailed as e:
                        # The service usually hangs up instead of replying
                        logger.debug(f"No reply to close notice: {e}")
        finally:
            self._state = SessionState.DISCONNECTED
            transport, self._transport = self._transport, None
            if transport is not None:
                await transport.close()
            await self._dispatcher.stop()
            logger.info(f"Session {self.client_id} disconnected")

    async def reconnect(self) -> None:
        """Not supported: sessions are not recoverable."""
        raise NotImplementedError("Reconnecting is not supported; create a new Session")

    async def __aenter__(self) -> Session:
        await self.open()
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.disconnect()

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    async def issue_command(
        self,
        command: str,
        arguments: Any,
        nonce: int | None = None,
        event_tag: str | None = None,
    ) -> Frame:
        """Send a command frame and return the service's reply frame.

        A random nonce is generated when none is given.
        """
        outgoing = OutgoingCommand(
            command=command,
            nonce=new_nonce() if nonce is None else nonce,
            arguments=arguments,
            event_tag=event_tag,
        )
        return await self.transact(Opcode.FRAME, outgoing)

    async def set_activity(self, activity: Activity | Mapping[str, Any]) -> Frame:
        """Publish presence for this process."""
        payload = activity.to_payload() if isinstance(activity, Activity) else dict(activity)
        return await self.issue_command(
            SET_ACTIVITY, {"pid": os.getpid(), "activity": payload}
        )

    async def clear_activity(self) -> Frame:
        """Remove presence for this process."""
        return await self.issue_command(SET_ACTIVITY, {"pid": os.getpid()})

    async def transact(self, opcode: int, message: WireMessage) -> Frame:
        """Write one frame and handle the single reply frame.

        Transactions never interleave: concurrent callers are serialized.

        Raises:
            WriteFailed: If no transport is open or the write fails
            ReadFailed: If the reply cannot be read
            CriticalFailure: If the reply is a critical error
        """
        async with self._io_lock:
            return await self._transact(opcode, message)

    async def _transact(self, opcode: int, message: WireMessage) -> Frame:
        transport = self._transport
        if transport is None:
            raise WriteFailed("There is no open transport; call open() first")

        await transport.write_frame(opcode, message)
        reply = await transport.read_frame()
        await self._handle_reply(reply)
        return reply

    async def _handle_reply(self, reply: Frame) -> None:
        message = reply.message
        if isinstance(message, IncomingCommand):
            if message.event_tag is not None:
                self._dispatcher.emit(message.event_tag, message)
                if message.event_tag == EventKind.READY:
                    self._state = SessionState.CONNECTED
                    logger.info(f"Session {self.client_id} connected")
        elif isinstance(message, CriticalError):
            raise CriticalFailure(message.message, code=message.code)
        elif reply.is_ping:
            logger.debug("Keepalive ping received; sending pong")
            await self._transact(Opcode.PONG, Empty())

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def on(self, kind: EventKind | str, callback: EventCallback) -> asyncio.Task[None]:
        """Run ``callback`` once with the next event of ``kind``.

        Returns the listener task; awaiting it waits for delivery, or for
        the session to disconnect (the callback then never runs).

        Raises:
            ListenWithoutConnection: If the session is not connected
            ValueError: If ``kind`` is not a known event name
        """
        if not self.is_connected:
            raise ListenWithoutConnection("Connect before listening for events")
        return self._dispatcher.listen(EventKind(kind), callback)

    async def wait_for(
        self, kind: EventKind | str, timeout: float | None = None
    ) -> IncomingCommand:
        """Wait for the next event of ``kind`` and return it.

        Raises:
            ListenWithoutConnection: If the session is not connected
            TimeoutError: If ``timeout`` elapses first
            ConnectionFailed: If the session disconnects first
        """
        received: asyncio.Future[IncomingCommand] = asyncio.get_running_loop().create_future()

        def deliver(message: IncomingCommand) -> None:
            if not received.done():
                received.set_result(message)

        def released(listener: asyncio.Task[None]) -> None:
            # The listener finished without firing: the dispatcher was stopped
            if not received.done():
                received.set_exception(ConnectionFailed("Session disconnected"))

        listener = self.on(kind, deliver)
        listener.add_done_callback(released)
        try:
            return await asyncio.wait_for(received, timeout)
        finally:
            if not listener.done():
                listener.cancel()
