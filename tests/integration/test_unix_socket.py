"""End-to-end session tests against a fake service on a Unix socket."""

import asyncio
import contextlib
import json
import struct

import pytest
import pytest_asyncio

from presence_ipc import ClientConfig, Session, SessionState
from presence_ipc.errors import CriticalFailure, WriteFailed
from presence_ipc.protocol import EventKind
from presence_ipc.transport import UnixSocketLocator

HEADER = struct.Struct("<II")


class FakeService:
    """Minimal desktop service speaking the framed protocol.

    Replies READY to the handshake, pings once before acknowledging the
    first command, answers pongs and close notices with empty frames, and
    records everything it receives.
    """

    def __init__(self, reject_with: tuple[int, str] | None = None):
        self.reject_with = reject_with
        self.received: list[tuple[int, dict]] = []
        self._pinged = False

    async def read(self, reader):
        opcode, length = HEADER.unpack(await reader.readexactly(HEADER.size))
        body = json.loads(await reader.readexactly(length))
        self.received.append((opcode, body))
        return opcode, body

    async def send(self, writer, opcode, body):
        raw = json.dumps(body).encode()
        writer.write(HEADER.pack(opcode, len(raw)) + raw)
        await writer.drain()

    async def handle(self, reader, writer):
        try:
            while True:
                opcode, body = await self.read(reader)
                if opcode == 0:
                    if self.reject_with:
                        code, message = self.reject_with
                        await self.send(writer, 2, {"code": code, "message": message})
                        return
                    await self.send(
                        writer,
                        1,
                        {"cmd": "DISPATCH", "nonce": None, "evt": "READY", "data": {"v": 1}},
                    )
                elif opcode == 1:
                    if not self._pinged:
                        self._pinged = True
                        await self.send(writer, 3, {})
                        continue
                    await self.send(
                        writer,
                        1,
                        {"cmd": body["cmd"], "nonce": body["nonce"], "evt": None, "data": {}},
                    )
                elif opcode == 4:
                    await self.send(
                        writer,
                        1,
                        {"cmd": "SET_ACTIVITY", "nonce": 0, "evt": None, "data": {}},
                    )
                elif opcode == 2:
                    return
        except asyncio.IncompleteReadError:
            pass
        finally:
            writer.close()


@pytest_asyncio.fixture
async def service_factory(socket_dir):
    servers = []

    async def start(service: FakeService, index: int = 0):
        server = await asyncio.start_unix_server(
            service.handle, path=str(socket_dir / f"discord-ipc-{index}")
        )
        servers.append(server)
        return UnixSocketLocator(environ={"XDG_RUNTIME_DIR": str(socket_dir)})

    yield start

    for server in servers:
        server.close()
        await server.wait_closed()


class TestUnixSocketSession:
    """Full protocol exchange over a real socket."""

    @pytest.mark.asyncio
    async def test_session_lifecycle(self, service_factory) -> None:
        """Handshake, keepalive, command and close against a live peer."""
        service = FakeService()
        locator = await service_factory(service, index=2)
        session = Session(ClientConfig(client_id="123456"), locator=locator)

        await session.open()
        await session.connect()
        assert session.is_connected

        await session.clear_activity()
        await session.disconnect()

        opcodes = [opcode for opcode, _ in service.received]
        assert opcodes == [0, 1, 4, 2]
        assert service.received[0][1] == {"v": 1, "client_id": "123456"}
        assert service.received[2][1] == {}
        assert session.state == SessionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_ready_event_delivered(self, service_factory) -> None:
        """The READY read during connect reaches a listener."""
        locator = await service_factory(FakeService())

        async with Session(ClientConfig(client_id="123456"), locator=locator) as session:
            ready = await session.wait_for(EventKind.READY, timeout=1)

        assert ready.data == {"v": 1}
        assert ready.nonce == 0

    @pytest.mark.asyncio
    async def test_handshake_rejected(self, service_factory) -> None:
        """A critical error reply surfaces as CriticalFailure."""
        locator = await service_factory(FakeService(reject_with=(4000, "Invalid Client ID")))
        session = Session(ClientConfig(client_id="bad"), locator=locator)
        await session.open()

        with pytest.raises(CriticalFailure) as exc_info:
            await session.connect()

        assert exc_info.value.code == 4000
        # The service has already hung up, so the close notice may not go out
        with contextlib.suppress(WriteFailed):
            await session.disconnect()
        assert session.state == SessionState.DISCONNECTED
