"""In-memory transport for tests.

Allows scripting replies and recording written frames. No actual I/O.

Usage:
    transport = MockTransport()
    transport.queue_reply(Opcode.FRAME, IncomingCommand(...))

    session = Session(config, locator=MockLocator(transport))
    await session.open()
    await session.connect()

    assert transport.written[0].opcode == Opcode.HANDSHAKE
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from ..errors import ReadFailed, TransportOpenFailed, WriteFailed
from ..protocol import Frame, WireMessage, encode_frame


class MockTransport:
    """Transport that replays scripted frames and records writes."""

    def __init__(self, replies: Iterable[Frame] = ()):
        self._replies: deque[Frame] = deque(replies)
        self._written: list[Frame] = []
        self.closed = False

    @property
    def written(self) -> list[Frame]:
        """All frames written so far, oldest first."""
        return self._written.copy()

    @property
    def remaining_replies(self) -> int:
        return len(self._replies)

    def queue_reply(self, opcode: int, message: WireMessage) -> None:
        """Append a frame to be returned by a later read."""
        self._replies.append(Frame(opcode=int(opcode), message=message))

    async def write_frame(self, opcode: int, message: WireMessage) -> None:
        if self.closed:
            raise WriteFailed("Transport is closed")
        # Encode anyway so serialization errors surface like on a real stream
        encode_frame(opcode, message)
        self._written.append(Frame(opcode=int(opcode), message=message))

    async def read_frame(self) -> Frame:
        if self.closed:
            raise ReadFailed("Transport is closed")
        if not self._replies:
            raise ReadFailed("Transport reached end of stream")
        return self._replies.popleft()

    async def close(self) -> None:
        self.closed = True


class MockLocator:
    """Locator that hands out a fixed transport (or fails when given none)."""

    def __init__(self, transport: MockTransport | None = None):
        self.transport = transport
        self.open_calls = 0

    def candidate_paths(self) -> list[str]:
        return ["mock://endpoint-0"]

    async def open(self) -> MockTransport:
        self.open_calls += 1
        if self.transport is None:
            raise TransportOpenFailed("no available endpoint")
        return self.transport
