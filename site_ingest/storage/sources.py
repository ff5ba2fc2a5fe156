"""Source registry: website sources de-duplicated per workspace by normalized URL."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from site_ingest.crawler.models import WEBSITE_SOURCE, Source
from site_ingest.logger import get_logger
from site_ingest.storage.db import Database, json_dumps, json_loads
from site_ingest.utils import new_id, normalize_url, utcnow_iso

log = get_logger("storage")


def _row_to_source(row) -> Source:
    d = dict(row)
    return Source(
        id=d["id"],
        workspace_id=d["workspace_id"],
        type=d["type"],
        config=json_loads(d.get("config_json"), {}),
        created_at=d["created_at"],
        updated_at=d["updated_at"],
    )


class SourceRegistry:
    def __init__(self, db: Database) -> None:
        self.db = db

    async def create_or_get_website_source(self, workspace_id: str, raw_url: str) -> Source:
        """Return the workspace's source for *raw_url*, creating it on first use."""
        url = normalize_url(raw_url)
        async with self.db.connect() as db:
            # INSERT OR IGNORE keeps two concurrent registrations down to one row
            now = utcnow_iso()
            cur = await db.execute(
                "INSERT OR IGNORE INTO sources(id, workspace_id, type, url, config_json, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (new_id(), workspace_id, WEBSITE_SOURCE, url, json_dumps({"url": url}), now, now),
            )
            created = cur.rowcount == 1
            await db.commit()
            cur = await db.execute(
                "SELECT * FROM sources WHERE workspace_id = ? AND type = ? AND url = ? LIMIT 1",
                (workspace_id, WEBSITE_SOURCE, url),
            )
            source = _row_to_source(await cur.fetchone())
        if created:
            log.info("Registered website source %s for workspace %s", url, workspace_id)
        return source

    async def get_source(self, source_id: str) -> Optional[Source]:
        async with self.db.connect() as db:
            cur = await db.execute("SELECT * FROM sources WHERE id = ? LIMIT 1", (source_id,))
            row = await cur.fetchone()
            return _row_to_source(row) if row else None

    async def list_website_sources(self, workspace_id: str) -> List[Source]:
        async with self.db.connect() as db:
            cur = await db.execute(
                "SELECT * FROM sources WHERE workspace_id = ? AND type = ? ORDER BY created_at DESC",
                (workspace_id, WEBSITE_SOURCE),
            )
            return [_row_to_source(r) for r in await cur.fetchall()]

    async def list_sources_with_stats(self, workspace_id: str) -> List[Dict[str, Any]]:
        """Every source of the workspace with ``pages_count`` and ``latest_crawl``."""
        async with self.db.connect() as db:
            cur = await db.execute(
                "SELECT s.*, COUNT(p.id) AS pages_count, MAX(p.crawled_at) AS latest_crawl "
                "FROM sources s LEFT JOIN crawled_pages p ON p.source_id = s.id "
                "WHERE s.workspace_id = ? GROUP BY s.id ORDER BY s.created_at DESC",
                (workspace_id,),
            )
            rows = await cur.fetchall()
        result = []
        for row in rows:
            entry = _row_to_source(row).to_dict()
            entry.pop("workspace_id")
            entry["pages_count"] = int(row["pages_count"])
            entry["latest_crawl"] = row["latest_crawl"]
            result.append(entry)
        return result
