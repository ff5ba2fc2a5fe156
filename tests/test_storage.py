# File: tests/test_storage.py
import itertools

import pytest

from site_ingest.crawler.models import PageContent
from site_ingest.storage import Database, SqlitePageStore, StoreError


def _content(text: str = "Hello world", title: str | None = "Title") -> PageContent:
    return PageContent(title=title, content_text=text, metadata={"word_count": len(text.split()), "url": "x"})


def _ticking_clock():
    counter = itertools.count(1)
    return lambda: f"2026-01-01T00:00:{next(counter):02d}+00:00"


@pytest.mark.asyncio()
async def test_create_or_get_source_is_idempotent_by_normalized_url(registry):
    first = await registry.create_or_get_website_source("ws1", "example.com")
    second = await registry.create_or_get_website_source("ws1", "https://example.com/")
    assert first.id == second.id
    assert first.type == "website"
    assert first.config == {"url": "https://example.com"}
    assert first.root_url == "https://example.com"

    other_ws = await registry.create_or_get_website_source("ws2", "example.com")
    assert other_ws.id != first.id

    assert len(await registry.list_website_sources("ws1")) == 1


@pytest.mark.asyncio()
async def test_get_source(registry):
    source = await registry.create_or_get_website_source("ws1", "example.com")
    assert (await registry.get_source(source.id)).config == source.config
    assert await registry.get_source("missing") is None


@pytest.mark.asyncio()
async def test_upsert_updates_existing_row_in_place(database, registry):
    store = SqlitePageStore(database, clock=_ticking_clock())
    source = await registry.create_or_get_website_source("ws1", "example.com")
    url = "https://example.com/about"

    first = await store.upsert_page("ws1", source.id, url, "<p>old</p>", _content("old text"))
    second = await store.upsert_page("ws1", source.id, url, "<p>new</p>", _content("new text", title=None))

    assert second.id == first.id
    assert second.crawled_at > first.crawled_at
    assert second.content_text == "new text"
    assert second.raw_html == "<p>new</p>"
    assert second.title is None
    assert second.metadata["word_count"] == 2
    assert await store.count_pages("ws1", source.id, url) == 1


@pytest.mark.asyncio()
async def test_same_url_under_other_source_is_a_separate_page(page_store, registry):
    a = await registry.create_or_get_website_source("ws1", "example.com")
    b = await registry.create_or_get_website_source("ws1", "example.org")
    url = "https://example.com/"
    await page_store.upsert_page("ws1", a.id, url, "<p/>", _content())
    await page_store.upsert_page("ws1", b.id, url, "<p/>", _content())
    assert await page_store.count_pages("ws1", a.id) == 1
    assert await page_store.count_pages("ws1", b.id) == 1


@pytest.mark.asyncio()
async def test_list_pages_newest_first(database, registry):
    store = SqlitePageStore(database, clock=_ticking_clock())
    source = await registry.create_or_get_website_source("ws1", "example.com")
    await store.upsert_page("ws1", source.id, "https://example.com/1", "<p/>", _content())
    await store.upsert_page("ws1", source.id, "https://example.com/2", "<p/>", _content())

    pages = await store.list_pages("ws1")
    assert [p["url"] for p in pages] == ["https://example.com/2", "https://example.com/1"]
    assert set(pages[0]) == {"id", "url", "title", "metadata", "crawled_at"}
    assert await store.list_pages("ws2") == []


@pytest.mark.asyncio()
async def test_sources_with_stats(database, registry):
    store = SqlitePageStore(database, clock=_ticking_clock())
    crawled = await registry.create_or_get_website_source("ws1", "example.com")
    await registry.create_or_get_website_source("ws1", "example.org")
    await store.upsert_page("ws1", crawled.id, "https://example.com/1", "<p/>", _content())
    await store.upsert_page("ws1", crawled.id, "https://example.com/2", "<p/>", _content())

    stats = {s["id"]: s for s in await registry.list_sources_with_stats("ws1")}
    assert stats[crawled.id]["pages_count"] == 2
    assert stats[crawled.id]["latest_crawl"] == "2026-01-01T00:00:02+00:00"
    empty = next(s for s in stats.values() if s["id"] != crawled.id)
    assert empty["pages_count"] == 0
    assert empty["latest_crawl"] is None


@pytest.mark.asyncio()
async def test_unavailable_database_raises_store_error(tmp_path):
    store = SqlitePageStore(Database(tmp_path / "missing-dir" / "nested" / "x.db"))
    with pytest.raises(StoreError):
        await store.upsert_page("ws1", "src", "https://example.com", "<p/>", _content())


@pytest.mark.asyncio()
async def test_uncreatable_database_directory_raises_store_error(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory", encoding="utf-8")
    with pytest.raises(StoreError):
        await Database(blocker / "sub" / "x.db").init()
