# File: site_ingest/api.py
"""
HTTP API of SiteIngest (aiohttp.web).

Routes:
  POST /api/workspaces/{workspace_id}/sources/website   register a website and crawl it
  GET  /api/workspaces/{workspace_id}/sources           sources with page counts
  GET  /api/workspaces/{workspace_id}/crawled-pages     crawled page summaries

Every route authenticates the caller and checks workspace membership first;
failures answer 401 / 403, anything unexpected answers a generic 500.
"""
from __future__ import annotations

import json
from typing import Awaitable, Callable, Optional

from aiohttp import web

from site_ingest.auth import Authorizer, build_authorizer
from site_ingest.engine import Engine
from site_ingest.logger import get_logger

log = get_logger("api")

ENGINE_KEY = web.AppKey("engine", Engine)
AUTHORIZER_KEY = web.AppKey("authorizer", Authorizer)

_Handler = Callable[[web.Request, str], Awaitable[web.Response]]


def _error(message: str, status: int) -> web.Response:
    return web.json_response({"error": message}, status=status)


def _workspace_route(handler: _Handler) -> Callable[[web.Request], Awaitable[web.Response]]:
    """Authenticate, check membership, then call *handler(request, workspace_id)*."""

    async def wrapper(request: web.Request) -> web.Response:
        workspace_id = request.match_info["workspace_id"]
        authorizer = request.app[AUTHORIZER_KEY]
        try:
            identity = await authorizer.authenticate(request)
            if identity is None:
                return _error("Unauthorized", 401)
            if not await authorizer.is_member(identity, workspace_id):
                return _error("Forbidden", 403)
            return await handler(request, workspace_id)
        except web.HTTPException:
            raise
        except Exception:
            log.exception("Error handling %s %s", request.method, request.path)
            return _error("Internal server error", 500)

    return wrapper


@_workspace_route
async def create_website_source(request: web.Request, workspace_id: str) -> web.Response:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None
    url = body.get("url") if isinstance(body, dict) else None
    if not url or not isinstance(url, str):
        return _error("Invalid URL", 400)

    engine = request.app[ENGINE_KEY]
    source, result = await engine.ingest_website(workspace_id, url)
    return web.json_response({"source": source.to_dict(), "result": result.to_dict()})


@_workspace_route
async def list_sources(request: web.Request, workspace_id: str) -> web.Response:
    sources = await request.app[ENGINE_KEY].list_sources(workspace_id)
    return web.json_response({"sources": sources})


@_workspace_route
async def list_crawled_pages(request: web.Request, workspace_id: str) -> web.Response:
    pages = await request.app[ENGINE_KEY].list_pages(workspace_id)
    return web.json_response({"pages": pages})


def create_app(engine: Engine, authorizer: Optional[Authorizer] = None) -> web.Application:
    """Build the application; *authorizer* defaults to the one the config selects."""
    app = web.Application()
    app[ENGINE_KEY] = engine
    app[AUTHORIZER_KEY] = authorizer or build_authorizer(engine.config)

    async def _init_db(_: web.Application) -> None:
        await engine.init()

    app.on_startup.append(_init_db)
    app.router.add_post("/api/workspaces/{workspace_id}/sources/website", create_website_source)
    app.router.add_get("/api/workspaces/{workspace_id}/sources", list_sources)
    app.router.add_get("/api/workspaces/{workspace_id}/crawled-pages", list_crawled_pages)
    return app


__all__ = ["create_app", "ENGINE_KEY", "AUTHORIZER_KEY"]
