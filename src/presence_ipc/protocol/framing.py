"""Binary framing: 8-byte little-endian header followed by a JSON body.

    +----------------+----------------+----------------------+
    | opcode (u32le) | length (u32le) | body (length bytes)  |
    +----------------+----------------+----------------------+

``length`` is always computed from the encoded body, never supplied by the
caller.
"""

from __future__ import annotations

import json
import struct
from dataclasses import dataclass
from enum import IntEnum

from pydantic_core import PydanticSerializationError

from ..errors import MalformedBody, SerializationFailed
from .messages import Empty, Message, WireMessage, from_wire

HEADER = struct.Struct("<II")
HEADER_SIZE = HEADER.size


class Opcode(IntEnum):
    """Frame purposes understood by the service."""

    HANDSHAKE = 0x0000
    FRAME = 0x0001
    CLOSE = 0x0002
    PING = 0x0003
    PONG = 0x0004


@dataclass(frozen=True)
class Header:
    opcode: int
    length: int

    def to_bytes(self) -> bytes:
        return HEADER.pack(self.opcode, self.length)

    @classmethod
    def from_bytes(cls, raw: bytes) -> Header:
        if len(raw) != HEADER_SIZE:
            raise MalformedBody(f"Header must be {HEADER_SIZE} bytes, got {len(raw)}")
        opcode, length = HEADER.unpack(raw)
        return cls(opcode=opcode, length=length)


@dataclass(frozen=True)
class Frame:
    """A decoded frame: the header's opcode plus the parsed body."""

    opcode: int
    message: Message

    @property
    def is_ping(self) -> bool:
        return self.opcode == Opcode.PING and isinstance(self.message, Empty)


def encode_body(message: WireMessage) -> bytes:
    """Serialize a message to its compact UTF-8 JSON body."""
    try:
        return json.dumps(
            message.to_wire(), separators=(",", ":"), ensure_ascii=False
        ).encode("utf-8")
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise SerializationFailed(f"Cannot serialize {type(message).__name__}: {e}") from e


def encode_frame(opcode: int, message: WireMessage) -> tuple[bytes, bytes]:
    """Encode a message as (header bytes, body bytes)."""
    body = encode_body(message)
    try:
        header = Header(opcode=int(opcode), length=len(body)).to_bytes()
    except struct.error as e:
        raise SerializationFailed(f"Cannot encode header: {e}") from e
    return header, body


def decode_header(raw: bytes) -> Header:
    """Parse the 8-byte frame header."""
    return Header.from_bytes(raw)


def decode_body(raw: bytes) -> Message:
    """Parse a frame body into a message."""
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedBody(f"Body is not valid UTF-8: {e}") from e
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedBody(f"Body is not valid JSON: {e}") from e
    return from_wire(value)
