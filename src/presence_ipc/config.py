"""Client configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

# Environment variables consulted by ClientConfig.from_env()
ENV_CLIENT_ID = "PRESENCE_IPC_CLIENT_ID"
ENV_PREFIX = "PRESENCE_IPC_PREFIX"

DEFAULT_IPC_PREFIX = "discord-ipc-"
DEFAULT_MAX_ENDPOINTS = 9
PROTOCOL_VERSION = 1


@dataclass
class ClientConfig:
    """Configuration for a single IPC session.

    ``client_id`` is the application identifier sent in the handshake and
    stays fixed for the lifetime of a session. The remaining fields only
    need changing when talking to a non-standard service.
    """

    client_id: str
    protocol_version: int = PROTOCOL_VERSION

    # Endpoint discovery: "<prefix>0" .. "<prefix>{max_endpoints - 1}"
    ipc_prefix: str = DEFAULT_IPC_PREFIX
    max_endpoints: int = DEFAULT_MAX_ENDPOINTS

    @classmethod
    def from_env(cls, client_id: str | None = None) -> ClientConfig:
        """Build a config from environment variables.

        An explicit ``client_id`` wins over ``PRESENCE_IPC_CLIENT_ID``.

        Raises:
            ValueError: If no client id is available from either source
        """
        resolved = client_id or os.getenv(ENV_CLIENT_ID)
        if not resolved:
            raise ValueError(f"No client id given and {ENV_CLIENT_ID} is not set")
        return cls(
            client_id=resolved,
            ipc_prefix=os.getenv(ENV_PREFIX, DEFAULT_IPC_PREFIX),
        )
