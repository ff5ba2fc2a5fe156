"""SQLite connection helpers and schema for SiteIngest."""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Union

import aiosqlite

SCHEMA = """
CREATE TABLE IF NOT EXISTS sources (
    id TEXT PRIMARY KEY,
    workspace_id TEXT NOT NULL,
    type TEXT NOT NULL,
    url TEXT NOT NULL,
    config_json TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE UNIQUE INDEX IF NOT EXISTS ux_sources_workspace_url ON sources(workspace_id, type, url);

CREATE TABLE IF NOT EXISTS crawled_pages (
    id TEXT PRIMARY KEY,
    workspace_id TEXT NOT NULL,
    source_id TEXT NOT NULL REFERENCES sources(id) ON DELETE CASCADE,
    url TEXT NOT NULL,
    title TEXT,
    content_text TEXT,
    raw_html TEXT,
    metadata_json TEXT NOT NULL DEFAULT '{}',
    crawled_at TEXT NOT NULL
);
CREATE UNIQUE INDEX IF NOT EXISTS ux_pages_triple ON crawled_pages(workspace_id, source_id, url);
CREATE INDEX IF NOT EXISTS ix_pages_workspace_crawled ON crawled_pages(workspace_id, crawled_at);
"""


class StoreError(RuntimeError):
    """Persistence failure (storage unavailable, constraint or I/O error)."""


class Database:
    """Opens one aiosqlite connection per operation against *path*."""

    def __init__(self, path: Union[str, Path], *, busy_timeout_ms: int = 5000) -> None:
        self.path = Path(path)
        self.busy_timeout_ms = busy_timeout_ms

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a configured connection; driver errors surface as :class:`StoreError`."""
        try:
            db = await aiosqlite.connect(str(self.path))
        except (aiosqlite.Error, OSError) as exc:
            raise StoreError(f"cannot open database {self.path}: {exc}") from exc
        try:
            db.row_factory = aiosqlite.Row
            await db.execute("PRAGMA foreign_keys=ON;")
            await db.execute(f"PRAGMA busy_timeout={max(100, int(self.busy_timeout_ms))};")
            yield db
        except aiosqlite.Error as exc:
            raise StoreError(str(exc)) from exc
        finally:
            await db.close()

    async def init(self) -> None:
        """Create the schema if it does not exist yet."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreError(f"cannot create database directory for {self.path}: {exc}") from exc
        async with self.connect() as db:
            await db.execute("PRAGMA journal_mode=WAL;")
            await db.executescript(SCHEMA)
            await db.commit()


def json_dumps(value: Any) -> str:
    return json.dumps(value if value is not None else {}, ensure_ascii=False, default=str)


def json_loads(value: str | None, default: Any) -> Any:
    if not value:
        return default
    try:
        return json.loads(value)
    except ValueError:
        return default
