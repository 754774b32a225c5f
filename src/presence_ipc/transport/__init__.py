"""Transport layer: endpoint discovery and frame I/O.

- Transport / TransportLocator: interfaces used by the session
- StreamTransport: asyncio stream implementation
- UnixSocketLocator / NamedPipeLocator: platform discovery
- MockTransport / MockLocator: in-memory doubles for tests
"""

from .base import Transport, TransportLocator
from .locator import (
    PIPE_NAMESPACE,
    SOCKET_DIR_ENV_VARS,
    SOCKET_FALLBACK_DIR,
    EndpointLocator,
    NamedPipeLocator,
    UnixSocketLocator,
    select_locator,
)
from .mock import MockLocator, MockTransport
from .stream import StreamTransport

__all__ = [
    # Interfaces
    "Transport",
    "TransportLocator",
    # Stream implementation
    "StreamTransport",
    # Discovery
    "EndpointLocator",
    "NamedPipeLocator",
    "UnixSocketLocator",
    "select_locator",
    "PIPE_NAMESPACE",
    "SOCKET_DIR_ENV_VARS",
    "SOCKET_FALLBACK_DIR",
    # Test doubles
    "MockLocator",
    "MockTransport",
]
