"""Wire protocol: framing, message envelope and event kinds.

Key concepts:
- Frame: 8-byte header (opcode, body length) + JSON body
- Message: one of five body shapes, told apart by field presence
- EventKind: closed set of named events carried on incoming commands
"""

from .events import EventKind
from .framing import (
    HEADER_SIZE,
    Frame,
    Header,
    Opcode,
    decode_body,
    decode_header,
    encode_body,
    encode_frame,
)
from .messages import (
    CriticalError,
    Empty,
    Handshake,
    IncomingCommand,
    Message,
    OutgoingCommand,
    WireMessage,
    classify,
    from_wire,
    to_wire,
)

__all__ = [
    "EventKind",
    "Frame",
    "Header",
    "HEADER_SIZE",
    "Opcode",
    "decode_body",
    "decode_header",
    "encode_body",
    "encode_frame",
    "CriticalError",
    "Empty",
    "Handshake",
    "IncomingCommand",
    "Message",
    "OutgoingCommand",
    "WireMessage",
    "classify",
    "from_wire",
    "to_wire",
]
