# File: site_ingest/engine.py
"""site_ingest.engine: wiring of config, storage and crawler used by the CLI and the HTTP API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from site_ingest.config import IngestConfig
from site_ingest.crawler.crawler import crawl_website
from site_ingest.crawler.fetcher import Fetcher
from site_ingest.crawler.models import CrawlResult, Source
from site_ingest.logger import logger
from site_ingest.storage import Database, SourceRegistry, SqlitePageStore

__all__ = ["Engine"]


class Engine:
    """Facade over one database: register sources, crawl them, list what was stored."""

    def __init__(self, config: IngestConfig) -> None:
        self.config = config
        self.db = Database(config.db_path)
        self.sources = SourceRegistry(self.db)
        self.pages = SqlitePageStore(self.db)

    async def init(self) -> Engine:
        await self.db.init()
        return self

    async def crawl(self, workspace_id: str, source: Source, max_pages: Optional[int] = None) -> CrawlResult:
        """Crawl an already registered, already authorized source."""
        async with Fetcher(timeout=self.config.timeout, user_agent=self.config.user_agent) as fetcher:
            return await crawl_website(
                workspace_id,
                source,
                store=self.pages,
                fetcher=fetcher,
                max_pages=max_pages or self.config.max_pages,
                continue_on_store_error=self.config.continue_on_store_error,
            )

    async def ingest_website(
        self, workspace_id: str, raw_url: str, max_pages: Optional[int] = None
    ) -> Tuple[Source, CrawlResult]:
        """Create or reuse the website source for *raw_url* and crawl it."""
        source = await self.sources.create_or_get_website_source(workspace_id, raw_url)
        logger.info("Starting crawl of %s (source %s)", source.root_url, source.id)
        result = await self.crawl(workspace_id, source, max_pages)
        return source, result

    async def list_pages(self, workspace_id: str) -> List[Dict[str, Any]]:
        return await self.pages.list_pages(workspace_id)

    async def list_sources(self, workspace_id: str) -> List[Dict[str, Any]]:
        return await self.sources.list_sources_with_stats(workspace_id)
