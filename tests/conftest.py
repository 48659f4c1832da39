"""Shared fixtures for scrape pipeline tests."""

import asyncio
import socket
import threading
import time
from collections.abc import Generator
from contextlib import closing

import pytest
from aiohttp import web

from tests.mock_server import create_app
from tests.utils import FakePageSession, FakeSessionFactory, fast_settings
from ycscrape.settings import ScrapeSettings


@pytest.fixture
def settings() -> ScrapeSettings:
    """Settings with every pause set to zero.

    Returns:
        ScrapeSettings suitable for fake sessions.
    """
    return fast_settings()


@pytest.fixture
def fake_session() -> FakePageSession:
    """An empty in-memory page session."""
    return FakePageSession()


@pytest.fixture
def session_factory(fake_session: FakePageSession) -> FakeSessionFactory:
    """A session factory handing out fake_session.

    Returns:
        FakeSessionFactory counting opens and closes.
    """
    return FakeSessionFactory(fake_session)


# =============================================================================
# aiohttp mock directory server
# =============================================================================


def find_free_port() -> int:
    """Find a free port on localhost.

    Returns:
        An available port number.
    """
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


class AioHttpTestServer:
    """Wrapper to run aiohttp server in a background thread."""

    def __init__(self, app: web.Application, port: int) -> None:
        self.app = app
        self.port = port
        self.host = "127.0.0.1"
        self._loop: asyncio.AbstractEventLoop | None = None
        self._runner: web.AppRunner | None = None
        self._thread: threading.Thread | None = None
        self._started = threading.Event()

    @property
    def url(self) -> str:
        """Get the base URL of the server."""
        return f"http://{self.host}:{self.port}"

    @property
    def netloc(self) -> str:
        return f"{self.host}:{self.port}"

    def start(self) -> None:
        """Start the server in a background thread."""
        self._thread = threading.Thread(target=self._run_server, daemon=True)
        self._thread.start()
        self._started.wait(timeout=5.0)

    def _run_server(self) -> None:
        """Run the server in an asyncio event loop."""
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)

        async def start() -> None:
            self._runner = web.AppRunner(self.app)
            await self._runner.setup()
            site = web.TCPSite(self._runner, self.host, self.port)
            await site.start()

        self._loop.run_until_complete(start())
        self._started.set()
        self._loop.run_forever()

    def stop(self) -> None:
        """Stop the server and clean up resources."""
        if self._loop and self._runner:
            future = asyncio.run_coroutine_threadsafe(
                self._runner.cleanup(), self._loop
            )
            future.result(timeout=2.0)

        if self._loop:
            self._loop.call_soon_threadsafe(self._loop.stop)

        if self._thread:
            self._thread.join(timeout=2.0)


@pytest.fixture
def directory_server() -> Generator[AioHttpTestServer, None, None]:
    """Start the mock company directory on a random port.

    Yields:
        AioHttpTestServer instance with the mock directory running.
    """
    server = AioHttpTestServer(create_app(), find_free_port())
    server.start()
    # Give the listener a moment before the browser connects.
    time.sleep(0.05)
    yield server
    server.stop()
