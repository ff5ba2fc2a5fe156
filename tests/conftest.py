# File: tests/conftest.py
import asyncio
import logging
from collections import Counter
from pathlib import Path
from typing import Dict, Tuple, Union

import pytest
import pytest_asyncio
from aiohttp import web

from site_ingest.logger import LOGGER_NAME
from site_ingest.storage import Database, SourceRegistry, SqlitePageStore

#: body, or (status, body)
PageSpec = Union[str, Tuple[int, str]]


class SiteServer:
    """Tiny aiohttp site serving fixed pages and counting hits per path."""

    def __init__(self, port: int) -> None:
        self.port = port
        self.hits: Counter = Counter()
        self.user_agents: list[str] = []
        self._runners: list[web.AppRunner] = []

    @property
    def base_url(self) -> str:
        return f"http://127.0.0.1:{self.port}"

    async def start(self, pages: Dict[str, PageSpec], delays: Dict[str, float] | None = None) -> str:
        delays = delays or {}

        async def handler(request: web.Request) -> web.Response:
            self.hits[request.path] += 1
            self.user_agents.append(request.headers.get("User-Agent", ""))
            if request.path in delays:
                await asyncio.sleep(delays[request.path])
            entry = pages.get(request.path)
            if entry is None:
                return web.Response(status=404, text="not found")
            status, body = entry if isinstance(entry, tuple) else (200, entry)
            return web.Response(status=status, text=body, content_type="text/html")

        app = web.Application()
        app.router.add_route("GET", "/{tail:.*}", handler)
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, "127.0.0.1", self.port)
        await site.start()
        self._runners.append(runner)
        return self.base_url

    async def close(self) -> None:
        for runner in self._runners:
            await runner.cleanup()


@pytest_asyncio.fixture
async def site_server(unused_tcp_port_factory):
    server = SiteServer(unused_tcp_port_factory())
    try:
        yield server
    finally:
        await server.close()


@pytest_asyncio.fixture
async def database(tmp_path: Path) -> Database:
    db = Database(tmp_path / "ingest.db")
    await db.init()
    return db


@pytest.fixture()
def page_store(database: Database) -> SqlitePageStore:
    return SqlitePageStore(database)


@pytest.fixture()
def registry(database: Database) -> SourceRegistry:
    return SourceRegistry(database)


@pytest.fixture(autouse=True)
def _propagating_logger():
    """CLI tests reconfigure the project logger; keep caplog working afterwards."""
    lg = logging.getLogger(LOGGER_NAME)
    yield
    lg.handlers.clear()
    lg.propagate = True
    lg.setLevel(logging.NOTSET)
