"""
Data models for the SiteIngest crawler and its storage.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

WEBSITE_SOURCE = "website"


@dataclass(slots=True)
class PageContent:
    """Title, cleaned body text and metadata extracted from one HTML page."""

    title: Optional[str]
    content_text: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class CrawlResult:
    """Outcome of one crawl invocation."""

    pages_crawled: int

    def to_dict(self) -> Dict[str, Any]:
        return {"pagesCrawled": self.pages_crawled}


@dataclass(slots=True)
class Source:
    """A configured crawl target owned by a workspace."""

    id: str
    workspace_id: str
    type: str
    config: Dict[str, Any]
    created_at: str
    updated_at: str

    @property
    def root_url(self) -> str:
        """Root URL of a website source."""
        return self.config["url"]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class CrawledPage:
    """One fetched and extracted page, unique per (workspace_id, source_id, url)."""

    id: str
    workspace_id: str
    source_id: str
    url: str
    title: Optional[str]
    content_text: Optional[str]
    raw_html: Optional[str]
    metadata: Dict[str, Any]
    crawled_at: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
