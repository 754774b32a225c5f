"""presence-ipc - Local IPC client for the desktop presence service.

Connects over a named pipe (Windows) or Unix domain socket, performs the
versioned handshake, exchanges length-prefixed JSON commands and hands
named events to one-shot listeners.

    session.py    -> connect/command/disconnect state machine
    dispatcher.py -> one-shot event delivery
    protocol/     -> framing, message envelope, event kinds
    transport/    -> endpoint discovery and frame I/O
    activity.py   -> presence payload builder
"""

from .activity import Activity, Assets, Button, Timestamps
from .config import ClientConfig
from .dispatcher import EventDispatcher
from .errors import (
    AlreadyConnected,
    ConnectionFailed,
    CriticalFailure,
    ListenWithoutConnection,
    MalformedBody,
    PresenceIPCError,
    ReadFailed,
    SerializationFailed,
    TransportOpenFailed,
    UnknownEventTag,
    WriteFailed,
)
from .protocol import EventKind, Frame, Opcode
from .session import Session, SessionState

__all__ = [
    # Session
    "Session",
    "SessionState",
    "ClientConfig",
    "EventDispatcher",
    # Protocol
    "EventKind",
    "Frame",
    "Opcode",
    # Presence payload
    "Activity",
    "Assets",
    "Button",
    "Timestamps",
    # Errors
    "PresenceIPCError",
    "TransportOpenFailed",
    "ConnectionFailed",
    "AlreadyConnected",
    "SerializationFailed",
    "MalformedBody",
    "UnknownEventTag",
    "CriticalFailure",
    "ReadFailed",
    "WriteFailed",
    "ListenWithoutConnection",
]

__version__ = "0.1.0"
