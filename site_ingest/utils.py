# File: site_ingest/utils.py
"""site_ingest.utils: URL normalization, identifiers and timestamps shared by crawler and storage."""

from __future__ import annotations

import string
import uuid
from datetime import datetime, timezone
from typing import Sequence
from urllib.parse import urlsplit

__all__: Sequence[str] = (
    "normalize_url",
    "frontier_key",
    "extract_host",
    "new_id",
    "utcnow_iso",
)

_SCHEMES = ("http://", "https://")
_TRAILING = string.whitespace + "/"


def normalize_url(url: str) -> str:
    """Canonical form of a user-supplied site address.

    Adds ``https://`` when no http(s) scheme is present and drops the trailing
    slash. Case, default ports and query order are left untouched, so inputs
    differing only in those respects stay distinct.

    >>> normalize_url("example.com")
    'https://example.com'
    >>> normalize_url("https://example.com/")
    'https://example.com'
    """
    normalized = url.strip()
    if not normalized.startswith(_SCHEMES):
        normalized = "https://" + normalized

    # never eat into the "://" separator itself
    head, sep, rest = normalized.partition("://")
    return head + sep + rest.rstrip(_TRAILING)


def frontier_key(url: str) -> str:
    """Key under which the crawl frontier de-duplicates *url*.

    ``https://example.com/`` and ``https://example.com`` are the same page.
    """
    if url.endswith("/") and not url.endswith("://"):
        return url[:-1]
    return url


def extract_host(url: str) -> str | None:
    """Lower-cased hostname of *url*, or None when it cannot be parsed."""
    try:
        return urlsplit(url).hostname
    except ValueError:
        return None


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")
