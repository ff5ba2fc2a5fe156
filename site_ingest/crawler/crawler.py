# site_ingest/crawler/crawler.py
"""
Crawl orchestrator: breadth-first, same-domain, one page at a time.

For each URL taken from the frontier the page is fetched, extracted,
persisted and only then are its links considered for the queue.
"""
from __future__ import annotations

from typing import List, Optional

from site_ingest.crawler.fetcher import Fetcher
from site_ingest.crawler.frontier import Frontier
from site_ingest.crawler.link_extractor import extract_internal_links
from site_ingest.crawler.models import CrawlResult, Source
from site_ingest.logger import get_logger
from site_ingest.parser.html_parser import extract_content
from site_ingest.storage.db import StoreError
from site_ingest.storage.pages import PageStore

__all__ = ("DEFAULT_MAX_PAGES", "WebsiteCrawler", "crawl_website")

DEFAULT_MAX_PAGES: int = 10

log = get_logger("crawler")


class WebsiteCrawler:
    """Runs crawls of website sources with a given fetcher and page store."""

    def __init__(
        self,
        fetcher: Fetcher,
        store: PageStore,
        *,
        continue_on_store_error: bool = False,
    ) -> None:
        self.fetcher = fetcher
        self.store = store
        self.continue_on_store_error = continue_on_store_error

    async def crawl(
        self,
        workspace_id: str,
        source: Source,
        *,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> CrawlResult:
        start_url = source.root_url
        frontier = Frontier.seeded(start_url)
        pages_crawled = 0

        while frontier and pages_crawled < max_pages:
            if not await self.step(frontier, workspace_id, source.id, position=(pages_crawled + 1, max_pages)):
                break
            pages_crawled += 1

        log.info("Crawl complete. Crawled %d pages.", pages_crawled)
        return CrawlResult(pages_crawled=pages_crawled)

    async def step(
        self,
        frontier: Frontier,
        workspace_id: str,
        source_id: str,
        *,
        position: Optional[tuple[int, int]] = None,
    ) -> bool:
        """Process the next unvisited URL of *frontier*.

        Returns False when only already-visited entries were left, i.e. no
        page budget was consumed.
        """
        url = frontier.pop()
        if url is None:
            return False
        if position:
            log.info("Crawling page %d/%d: %s", position[0], position[1], url)
        links = await self.crawl_page(url, workspace_id, source_id)
        frontier.enqueue(links)
        return True

    async def crawl_page(self, url: str, workspace_id: str, source_id: str) -> List[str]:
        """Fetch, extract and store one page; return its same-domain links."""
        html = await self.fetcher.fetch(url)
        if html is None:
            return []

        content = extract_content(html, url)
        try:
            await self.store.upsert_page(workspace_id, source_id, url, html, content)
        except StoreError:
            if not self.continue_on_store_error:
                raise
            log.exception("Failed to store %s, skipping page", url)

        return extract_internal_links(html, url)


async def crawl_website(
    workspace_id: str,
    source: Source,
    *,
    store: PageStore,
    fetcher: Optional[Fetcher] = None,
    max_pages: int = DEFAULT_MAX_PAGES,
    continue_on_store_error: bool = False,
) -> CrawlResult:
    """
    Crawl *source* for *workspace_id* and persist every fetched page.

    The caller is expected to have authorized the (workspace, source) pair.
    When no *fetcher* is given a default one (10 s timeout) is opened for the
    duration of the crawl.
    """
    if fetcher is None:
        async with Fetcher() as own_fetcher:
            return await crawl_website(
                workspace_id,
                source,
                store=store,
                fetcher=own_fetcher,
                max_pages=max_pages,
                continue_on_store_error=continue_on_store_error,
            )
    crawler = WebsiteCrawler(fetcher, store, continue_on_store_error=continue_on_store_error)
    return await crawler.crawl(workspace_id, source, max_pages=max_pages)
