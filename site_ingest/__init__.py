"""
SiteIngest package initializer.
Defines package version and exposes the crawl entry point.
"""
__version__ = "0.1.0"

from site_ingest.crawler.crawler import crawl_website  # noqa: E402
from site_ingest.utils import normalize_url  # noqa: E402

__all__ = ["__version__", "crawl_website", "normalize_url"]
