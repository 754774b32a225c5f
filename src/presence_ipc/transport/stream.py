"""Frame transport over an asyncio stream pair (Unix socket or named pipe)."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from ..errors import ReadFailed, WriteFailed
from ..protocol import HEADER_SIZE, Frame, WireMessage, decode_body, decode_header, encode_frame

logger = logging.getLogger(__name__)


class StreamTransport:
    """Reads and writes frames on an ``asyncio`` reader/writer pair.

    Reads have no timeout: a silent peer blocks the caller until it replies
    or hangs up.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        path: str = "",
    ):
        self._reader = reader
        self._writer = writer
        self.path = path
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def write_frame(self, opcode: int, message: WireMessage) -> None:
        if self._closed:
            raise WriteFailed("Transport is closed")

        header, body = encode_frame(opcode, message)
        try:
            self._writer.write(header + body)
            await self._writer.drain()
        except OSError as e:
            raise WriteFailed(f"Failed to write frame to {self.path}: {e}") from e
        logger.debug(f"-> opcode={opcode} {body[:120]!r}")

    async def read_frame(self) -> Frame:
        if self._closed:
            raise ReadFailed("Transport is closed")

        try:
            header = decode_header(await self._reader.readexactly(HEADER_SIZE))
            body = await self._reader.readexactly(header.length)
        except asyncio.IncompleteReadError as e:
            raise ReadFailed("Transport reached end of stream") from e
        except OSError as e:
            raise ReadFailed(f"Failed to read frame from {self.path}: {e}") from e

        logger.debug(f"<- opcode={header.opcode} {body[:120]!r}")
        return Frame(opcode=header.opcode, message=decode_body(body))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._writer.close()
        with contextlib.suppress(OSError):
            await self._writer.wait_closed()
        logger.debug(f"Closed transport {self.path}")
