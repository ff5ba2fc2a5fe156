"""site_ingest.crawler: frontier, fetcher, link discovery and the crawl loop."""
