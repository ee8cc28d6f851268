"""
Pytest configuration and shared fixtures for integration tests.

Each test gets its own fake Cove server on a free local port and a client
pointed at it.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio

from cove_client import CoveClient
from test_helpers import (
    TEST_CREDENTIAL,
    FakeCoveServer,
    server_base_url,
    start_fake_server,
)


@pytest.fixture
def fake_cove() -> FakeCoveServer:
    """Fake server state; register responses on it before calling the client."""
    return FakeCoveServer()


@pytest_asyncio.fixture
async def cove_base_url(fake_cove: FakeCoveServer) -> AsyncGenerator[str, None]:
    """Run the fake server for the duration of a test and yield its URL."""
    server = await start_fake_server(fake_cove)
    try:
        yield server_base_url(server)
    finally:
        await server.close()


@pytest_asyncio.fixture
async def client(cove_base_url: str) -> AsyncGenerator[CoveClient, None]:
    """Client authenticated with the fake server's credential."""
    async with CoveClient(cove_base_url, TEST_CREDENTIAL) as cove:
        yield cove
