# File: tests/test_api.py
from __future__ import annotations

import pytest
import pytest_asyncio
from aiohttp import ClientSession, web

from site_ingest.api import create_app
from site_ingest.auth import DevModeAuthorizer, TokenAuthorizer, build_authorizer
from site_ingest.config import ApiToken, IngestConfig
from site_ingest.engine import Engine

TOKEN = "secret-token"
HEADERS = {"Authorization": f"Bearer {TOKEN}"}


@pytest.fixture()
def config(tmp_path) -> IngestConfig:
    return IngestConfig(
        db_path=tmp_path / "api.db",
        timeout=2.0,
        api_tokens={TOKEN: ApiToken(user_id="u1", workspaces=["ws1"])},
    )


@pytest_asyncio.fixture
async def api(config, unused_tcp_port_factory):
    app = create_app(Engine(config))
    runner = web.AppRunner(app)
    await runner.setup()
    port = unused_tcp_port_factory()
    await web.TCPSite(runner, "127.0.0.1", port).start()
    async with ClientSession(base_url=f"http://127.0.0.1:{port}") as session:
        yield session
    await runner.cleanup()


@pytest.mark.asyncio()
async def test_requires_authentication(api):
    async with api.get("/api/workspaces/ws1/crawled-pages") as resp:
        assert resp.status == 401
        assert await resp.json() == {"error": "Unauthorized"}
    async with api.get("/api/workspaces/ws1/sources", headers={"Authorization": "Bearer nope"}) as resp:
        assert resp.status == 401


@pytest.mark.asyncio()
async def test_requires_membership(api):
    async with api.post("/api/workspaces/ws2/sources/website", json={"url": "example.com"}, headers=HEADERS) as resp:
        assert resp.status == 403
        assert await resp.json() == {"error": "Forbidden"}


@pytest.mark.asyncio()
@pytest.mark.parametrize("body", [{}, {"url": ""}, {"url": 42}, ["example.com"]])
async def test_rejects_invalid_url(api, body):
    async with api.post("/api/workspaces/ws1/sources/website", json=body, headers=HEADERS) as resp:
        assert resp.status == 400
        assert await resp.json() == {"error": "Invalid URL"}


@pytest.mark.asyncio()
async def test_rejects_non_json_body(api):
    async with api.post("/api/workspaces/ws1/sources/website", data="url=x", headers=HEADERS) as resp:
        assert resp.status == 400


@pytest.mark.asyncio()
async def test_register_and_crawl_website(api, site_server):
    base = await site_server.start(
        {"/": '<title>Home</title><a href="/about">About</a>', "/about": "<main>About us</main>"}
    )
    async with api.post("/api/workspaces/ws1/sources/website", json={"url": base + "/"}, headers=HEADERS) as resp:
        assert resp.status == 200
        payload = await resp.json()
    assert payload["result"] == {"pagesCrawled": 2}
    assert payload["source"]["config"] == {"url": base}
    assert payload["source"]["workspace_id"] == "ws1"

    async with api.get("/api/workspaces/ws1/crawled-pages", headers=HEADERS) as resp:
        pages = (await resp.json())["pages"]
    assert {p["url"] for p in pages} == {base, f"{base}/about"}
    assert {p["title"] for p in pages} == {"Home", None}

    async with api.get("/api/workspaces/ws1/sources", headers=HEADERS) as resp:
        sources = (await resp.json())["sources"]
    assert len(sources) == 1
    assert sources[0]["pages_count"] == 2
    assert sources[0]["latest_crawl"] is not None


@pytest.mark.asyncio()
async def test_internal_errors_are_generic(api, monkeypatch):
    async def boom(self, workspace_id):
        raise RuntimeError("database exploded")

    monkeypatch.setattr(Engine, "list_pages", boom)
    async with api.get("/api/workspaces/ws1/crawled-pages", headers=HEADERS) as resp:
        assert resp.status == 500
        assert await resp.json() == {"error": "Internal server error"}


def test_build_authorizer_picks_strategy(tmp_path):
    assert isinstance(build_authorizer(IngestConfig()), TokenAuthorizer)
    dev = IngestConfig(dev_mode={"enabled": True, "workspace_id": "ws-dev"})
    assert isinstance(build_authorizer(dev), DevModeAuthorizer)
    prod = IngestConfig(environment="production", dev_mode={"enabled": True, "workspace_id": "ws-dev"})
    assert isinstance(build_authorizer(prod), TokenAuthorizer)


@pytest.mark.asyncio()
async def test_dev_mode_authorizer_only_grants_dev_workspace():
    auth = DevModeAuthorizer("ws-dev")
    identity = await auth.authenticate(None)
    assert identity is not None
    assert await auth.is_member(identity, "ws-dev")
    assert not await auth.is_member(identity, "ws-other")
