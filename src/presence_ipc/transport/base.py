"""Transport abstraction.

A transport moves whole frames over a local byte stream. The session owns
exactly one transport and never uses it from two coroutines at once.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..protocol import Frame, WireMessage


@runtime_checkable
class Transport(Protocol):
    """Protocol for frame transports.

    All transports must implement:
    - write_frame: encode and send one frame
    - read_frame: block until one whole frame has arrived
    - close: release the underlying handle (idempotent)
    """

    async def write_frame(self, opcode: int, message: WireMessage) -> None:
        """Send one frame.

        Raises:
            SerializationFailed: If the message cannot be encoded
            WriteFailed: If the underlying stream rejects the write
        """
        ...

    async def read_frame(self) -> Frame:
        """Read exactly one frame.

        Raises:
            ReadFailed: On end of stream or an I/O error
            MalformedBody: If the body cannot be decoded
        """
        ...

    async def close(self) -> None:
        """Close the transport."""
        ...


@runtime_checkable
class TransportLocator(Protocol):
    """Discovers and opens the service's local endpoint."""

    def candidate_paths(self) -> list[str]:
        """Endpoint paths to try, in order."""
        ...

    async def open(self) -> Transport:
        """Open the first candidate that accepts a connection.

        Raises:
            TransportOpenFailed: If no candidate connects
        """
        ...
