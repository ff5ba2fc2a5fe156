"""Crawled page repository: idempotent upsert keyed by (workspace, source, url)."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Protocol

from site_ingest.crawler.models import CrawledPage, PageContent
from site_ingest.logger import get_logger
from site_ingest.storage.db import Database, json_dumps, json_loads
from site_ingest.utils import new_id, utcnow_iso

log = get_logger("storage")


class PageStore(Protocol):
    """What the crawl orchestrator needs from persistence."""

    async def upsert_page(
        self,
        workspace_id: str,
        source_id: str,
        url: str,
        raw_html: str,
        content: PageContent,
    ) -> CrawledPage: ...


def _row_to_page(row) -> CrawledPage:
    d = dict(row)
    return CrawledPage(
        id=d["id"],
        workspace_id=d["workspace_id"],
        source_id=d["source_id"],
        url=d["url"],
        title=d["title"],
        content_text=d["content_text"],
        raw_html=d["raw_html"],
        metadata=json_loads(d.get("metadata_json"), {}),
        crawled_at=d["crawled_at"],
    )


class SqlitePageStore:
    """:class:`PageStore` backed by the ``crawled_pages`` table."""

    def __init__(self, db: Database, *, clock: Callable[[], str] = utcnow_iso) -> None:
        self.db = db
        self._clock = clock

    async def upsert_page(
        self,
        workspace_id: str,
        source_id: str,
        url: str,
        raw_html: str,
        content: PageContent,
    ) -> CrawledPage:
        """Insert the page or update the existing row for the same triple in place.

        The existing identifier is kept; title, text, HTML, metadata and
        ``crawled_at`` are overwritten even when nothing changed.
        """
        now = self._clock()
        metadata_json = json_dumps(content.metadata)
        async with self.db.connect() as db:
            cur = await db.execute(
                "SELECT id FROM crawled_pages WHERE workspace_id = ? AND source_id = ? AND url = ? LIMIT 1",
                (workspace_id, source_id, url),
            )
            existing = await cur.fetchone()
            if existing:
                page_id = existing["id"]
                await db.execute(
                    "UPDATE crawled_pages SET title = ?, content_text = ?, raw_html = ?, metadata_json = ?, crawled_at = ? "
                    "WHERE id = ?",
                    (content.title, content.content_text, raw_html, metadata_json, now, page_id),
                )
                log.debug("Updated page %s (%s)", url, page_id)
            else:
                page_id = new_id()
                # a concurrent crawl of the same source may have inserted meanwhile
                await db.execute(
                    "INSERT INTO crawled_pages(id, workspace_id, source_id, url, title, content_text, raw_html, metadata_json, crawled_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?) "
                    "ON CONFLICT(workspace_id, source_id, url) DO UPDATE SET "
                    "title = excluded.title, content_text = excluded.content_text, raw_html = excluded.raw_html, "
                    "metadata_json = excluded.metadata_json, crawled_at = excluded.crawled_at",
                    (page_id, workspace_id, source_id, url, content.title, content.content_text, raw_html, metadata_json, now),
                )
                log.debug("Inserted page %s", url)
            await db.commit()
            cur = await db.execute(
                "SELECT * FROM crawled_pages WHERE workspace_id = ? AND source_id = ? AND url = ? LIMIT 1",
                (workspace_id, source_id, url),
            )
            return _row_to_page(await cur.fetchone())

    async def get_page(self, workspace_id: str, source_id: str, url: str) -> Optional[CrawledPage]:
        async with self.db.connect() as db:
            cur = await db.execute(
                "SELECT * FROM crawled_pages WHERE workspace_id = ? AND source_id = ? AND url = ? LIMIT 1",
                (workspace_id, source_id, url),
            )
            row = await cur.fetchone()
            return _row_to_page(row) if row else None

    async def count_pages(self, workspace_id: str, source_id: str, url: Optional[str] = None) -> int:
        sql = "SELECT COUNT(*) AS n FROM crawled_pages WHERE workspace_id = ? AND source_id = ?"
        params: tuple = (workspace_id, source_id)
        if url is not None:
            sql += " AND url = ?"
            params += (url,)
        async with self.db.connect() as db:
            cur = await db.execute(sql, params)
            row = await cur.fetchone()
            return int(row["n"])

    async def list_pages(self, workspace_id: str) -> List[Dict[str, Any]]:
        """Summary rows (no text or HTML) of a workspace's pages, newest crawl first."""
        async with self.db.connect() as db:
            cur = await db.execute(
                "SELECT id, url, title, metadata_json, crawled_at FROM crawled_pages "
                "WHERE workspace_id = ? ORDER BY crawled_at DESC",
                (workspace_id,),
            )
            rows = await cur.fetchall()
        return [
            {
                "id": r["id"],
                "url": r["url"],
                "title": r["title"],
                "metadata": json_loads(r["metadata_json"], {}),
                "crawled_at": r["crawled_at"],
            }
            for r in rows
        ]
