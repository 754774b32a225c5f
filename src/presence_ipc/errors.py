"""Error types raised by the IPC client.

Every failure is surfaced to the immediate caller as one of these types.
Low-level causes (socket errors, JSON errors, validation errors) are
chained with ``raise ... from``.
"""

from __future__ import annotations


class PresenceIPCError(Exception):
    """Base class for all client errors."""


class TransportOpenFailed(PresenceIPCError):
    """No candidate endpoint accepted a connection."""


class ConnectionFailed(PresenceIPCError):
    """Handshake could not be attempted (no transport, or session closed)."""


class AlreadyConnected(ConnectionFailed):
    """connect() was called on a session that already completed a handshake."""


class SerializationFailed(PresenceIPCError):
    """An outgoing message could not be turned into a JSON body."""


class MalformedBody(PresenceIPCError):
    """An incoming body was not valid UTF-8 JSON of a known shape."""


class UnknownEventTag(MalformedBody):
    """An incoming command carried an ``evt`` outside the known event set."""

    def __init__(self, tag: str):
        super().__init__(f"Unknown event tag: {tag!r}")
        self.tag = tag


class CriticalFailure(PresenceIPCError):
    """The remote service replied with a critical error frame."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


class ReadFailed(PresenceIPCError):
    """Reading a frame from the transport failed."""


class WriteFailed(PresenceIPCError):
    """Writing a frame to the transport failed."""


class ListenWithoutConnection(PresenceIPCError):
    """A listener was registered before the session reached Connected."""
