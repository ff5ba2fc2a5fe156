"""site_ingest.parser: HTML content extraction."""
