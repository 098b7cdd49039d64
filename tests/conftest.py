"""Shared fixtures for the seatwatch tests."""

import asyncio
import socket
import threading
from collections.abc import Generator
from contextlib import closing
from pathlib import Path

import pytest
from aiohttp import web

from seatwatch.store.base import (
    SECTIONS_ARCHIVE,
    SECTIONS_TRACKED,
    USERS,
    DocumentRef,
)
from seatwatch.store.memory import MemoryRecordStore
from seatwatch.store.sql import SQLRecordStore
from tests.mock_server import (
    SECTIONS,
    create_app,
    generate_sections_html,
)


@pytest.fixture
def sections_html() -> str:
    """Generate the portal's section results page.

    Returns:
        HTML string listing every mock section.
    """
    return generate_sections_html()


@pytest.fixture
def expected_section_count() -> int:
    """The number of sections in the mock data."""
    return len(SECTIONS)


SEED_DOCUMENTS = {
    USERS: {
        "uid-ada": {"number": "+14065550100", "name": "Ada"},
        "uid-bo": {"number": "+14065550111", "name": "Bo"},
    },
    SECTIONS_TRACKED: {
        "track-1": {
            "term": "F24",
            "crn": "222",
            "users": [{"uid": "uid-ada"}],
            "deptAbbr": "CSCI",
        },
    },
    SECTIONS_ARCHIVE: {},
}


@pytest.fixture
def memory_store() -> MemoryRecordStore:
    """An in-memory store seeded with two users and one tracked subscription."""
    return MemoryRecordStore(SEED_DOCUMENTS)


@pytest.fixture
def sql_store(tmp_path: Path) -> Generator[SQLRecordStore, None, None]:
    """A SQLite store in a temporary directory, seeded like memory_store."""
    store = SQLRecordStore(tmp_path / "seatwatch.db")
    for collection, documents in SEED_DOCUMENTS.items():
        for doc_id, fields in documents.items():
            store.put(DocumentRef(collection, doc_id), fields)
    yield store
    store.close()


@pytest.fixture(params=["memory", "sql"])
def store(request: pytest.FixtureRequest):
    """Each store implementation, seeded with the same documents."""
    return request.getfixturevalue(f"{request.param}_store")


# =============================================================================
# Mock portal server
# =============================================================================


def unused_port() -> int:
    """Ask the OS for a localhost port nothing is listening on."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class BackgroundServer:
    """Serves an aiohttp app from its own event loop on a daemon thread.

    The clients under test are synchronous, so the server can't share their
    thread. Use as a context manager; the app stays reachable through
    ``.app`` so tests can inspect what it recorded.
    """

    def __init__(self, app: web.Application) -> None:
        self.app = app
        self.host = "127.0.0.1"
        self.port = unused_port()
        self._loop = asyncio.new_event_loop()
        self._runner = web.AppRunner(app)
        self._ready = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def _serve(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_until_complete(self._runner.setup())
        site = web.TCPSite(self._runner, self.host, self.port)
        self._loop.run_until_complete(site.start())
        self._ready.set()
        self._loop.run_forever()

    def __enter__(self) -> "BackgroundServer":
        self._thread.start()
        if not self._ready.wait(timeout=5.0):
            raise RuntimeError(f"mock server did not start on {self.url}")
        return self

    def __exit__(self, *args: object) -> None:
        asyncio.run_coroutine_threadsafe(
            self._runner.cleanup(), self._loop
        ).result(timeout=5.0)
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5.0)
        self._loop.close()


@pytest.fixture
def portal_server() -> Generator[BackgroundServer, None, None]:
    """The mock portal and SMS gateway, running for one test."""
    with BackgroundServer(create_app()) as server:
        yield server


@pytest.fixture
def server_url(portal_server: BackgroundServer) -> str:
    """Base URL of the running mock server."""
    return portal_server.url
