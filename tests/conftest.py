"""Pytest configuration and shared fixtures."""

import sys
import tempfile
from pathlib import Path

import pytest

from presence_ipc import ClientConfig, Session
from presence_ipc.transport import MockLocator, MockTransport

APP_ID = "123456"


@pytest.fixture
def config() -> ClientConfig:
    """Config for the example application id."""
    return ClientConfig(client_id=APP_ID)


@pytest.fixture
def transport() -> MockTransport:
    """In-memory transport with no scripted replies."""
    return MockTransport()


@pytest.fixture
def locator(transport: MockTransport) -> MockLocator:
    """Locator exposing exactly one valid endpoint (the mock transport)."""
    return MockLocator(transport)


@pytest.fixture
def session(config: ClientConfig, locator: MockLocator) -> Session:
    """Unopened session wired to the mock transport."""
    return Session(config, locator=locator)


@pytest.fixture
def socket_dir():
    """Short temporary directory for Unix sockets (AF_UNIX paths are length-limited)."""
    if sys.platform == "win32":
        pytest.skip("Unix domain sockets only")
    with tempfile.TemporaryDirectory(prefix="pipc-", dir="/tmp") as tmpdir:
        yield Path(tmpdir)
