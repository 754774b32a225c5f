"""Platform-specific discovery of the service endpoint.

Both platforms probe ``<root><prefix>0`` .. ``<root><prefix>8`` in order
and keep the first endpoint that accepts a connection:

- Windows: named pipes under ``\\\\?\\pipe\\``
- Everything else: Unix domain sockets in the first directory named by
  ``XDG_RUNTIME_DIR``, ``TMPDIR``, ``TMP`` or ``TEMP``, falling back to
  ``/tmp``

No retry or backoff happens here; callers decide whether to try again.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from abc import ABC, abstractmethod
from collections.abc import Mapping

from ..config import DEFAULT_IPC_PREFIX, DEFAULT_MAX_ENDPOINTS, ClientConfig
from ..errors import TransportOpenFailed
from .stream import StreamTransport

logger = logging.getLogger(__name__)

PIPE_NAMESPACE = "\\\\?\\pipe\\"
SOCKET_DIR_ENV_VARS = ("XDG_RUNTIME_DIR", "TMPDIR", "TMP", "TEMP")
SOCKET_FALLBACK_DIR = "/tmp"


class EndpointLocator(ABC):
    """Base class for locators: candidate probing shared by both platforms."""

    def __init__(
        self,
        prefix: str = DEFAULT_IPC_PREFIX,
        max_endpoints: int = DEFAULT_MAX_ENDPOINTS,
    ):
        self.prefix = prefix
        self.max_endpoints = max_endpoints

    def endpoint_names(self) -> list[str]:
        return [f"{self.prefix}{index}" for index in range(self.max_endpoints)]

    @abstractmethod
    def candidate_paths(self) -> list[str]:
        """Full endpoint paths, in probing order."""
        ...

    @abstractmethod
    async def _connect(self, path: str) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        """Open one endpoint. Raises OSError if it is not available."""
        ...

    async def open(self) -> StreamTransport:
        """Open the first endpoint that accepts a connection."""
        for path in self.candidate_paths():
            try:
                reader, writer = await self._connect(path)
            except OSError as e:
                logger.debug(f"Endpoint {path} unavailable: {e}")
                continue
            logger.info(f"Connected to IPC endpoint {path}")
            return StreamTransport(reader, writer, path=path)
        raise TransportOpenFailed("no available endpoint")


class UnixSocketLocator(EndpointLocator):
    """Unix domain socket discovery (Linux, macOS, BSD)."""

    def __init__(
        self,
        prefix: str = DEFAULT_IPC_PREFIX,
        max_endpoints: int = DEFAULT_MAX_ENDPOINTS,
        environ: Mapping[str, str] | None = None,
    ):
        super().__init__(prefix, max_endpoints)
        self._environ = environ

    def base_directory(self) -> str:
        environ = os.environ if self._environ is None else self._environ
        for name in SOCKET_DIR_ENV_VARS:
            if value := environ.get(name):
                return value
        return SOCKET_FALLBACK_DIR

    def candidate_paths(self) -> list[str]:
        base = self.base_directory()
        return [os.path.join(base, name) for name in self.endpoint_names()]

    async def _connect(self, path: str) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        return await asyncio.open_unix_connection(path)


class NamedPipeLocator(EndpointLocator):
    """Windows named pipe discovery.

    Requires the proactor event loop (the default on Windows).
    """

    def candidate_paths(self) -> list[str]:
        return [f"{PIPE_NAMESPACE}{name}" for name in self.endpoint_names()]

    async def _connect(self, path: str) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        loop = asyncio.get_running_loop()
        create_pipe_connection = getattr(loop, "create_pipe_connection", None)
        if create_pipe_connection is None:
            raise TransportOpenFailed(
                f"{type(loop).__name__} cannot open named pipes; use the proactor event loop"
            )

        reader = asyncio.StreamReader()
        protocol = asyncio.StreamReaderProtocol(reader)
        transport, _ = await create_pipe_connection(lambda: protocol, path)
        writer = asyncio.StreamWriter(transport, protocol, reader, loop)
        return reader, writer


def select_locator(
    config: ClientConfig | None = None,
    platform: str = sys.platform,
) -> EndpointLocator:
    """Pick the locator for the given platform."""
    prefix = config.ipc_prefix if config else DEFAULT_IPC_PREFIX
    max_endpoints = config.max_endpoints if config else DEFAULT_MAX_ENDPOINTS
    if platform == "win32":
        return NamedPipeLocator(prefix, max_endpoints)
    return UnixSocketLocator(prefix, max_endpoints)
