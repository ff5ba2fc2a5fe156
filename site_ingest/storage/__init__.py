"""site_ingest.storage: SQLite persistence for sources and crawled pages."""

from site_ingest.storage.db import Database, StoreError
from site_ingest.storage.pages import PageStore, SqlitePageStore
from site_ingest.storage.sources import SourceRegistry

__all__ = ["Database", "StoreError", "PageStore", "SqlitePageStore", "SourceRegistry"]
