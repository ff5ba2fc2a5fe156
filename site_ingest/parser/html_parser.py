"""HTML content extraction for SiteIngest.

:func:`extract_content` turns raw markup into the record persisted for every
crawled page:

* title - document ``<title>`` text, else the first ``<h1>``, else ``None``.
* content_text - visible text of the main content region, whitespace-collapsed.
* metadata - ``word_count``, ``h1``, ``meta_description`` and ``url``.

Navigation and other boilerplate subtrees are dropped *before* any text is
read, so menus and footers never end up in the body text. Broken markup is
parsed best-effort by :mod:`html.parser`; unclosed tags never raise.
"""
from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any, Dict, Optional

from bs4 import BeautifulSoup

from site_ingest.crawler.models import PageContent

__all__: Sequence[str] = ("extract_content", "clean_text", "NON_CONTENT_TAGS", "CONTENT_SELECTORS")

NON_CONTENT_TAGS: Sequence[str] = (
    "script",
    "style",
    "nav",
    "footer",
    "header",
    "aside",
    "iframe",
    "noscript",
)

# Tried in order; the first selector matching anything wins.
CONTENT_SELECTORS: Sequence[str] = (
    "main",
    "article",
    '[role="main"]',
    ".main-content",
    "#main-content",
    ".content",
    "#content",
    "body",
)

_WS_RE = re.compile(r"\s+")
_NL_RE = re.compile(r"\n+")


def clean_text(text: str) -> str:
    """Collapse whitespace runs to one space, newline runs to one newline, and trim."""
    text = _WS_RE.sub(" ", text)
    text = _NL_RE.sub("\n", text)
    return text.strip()


def _first_text(soup: BeautifulSoup, name: str) -> Optional[str]:
    tag = soup.find(name)
    if tag is None:
        return None
    return tag.get_text().strip() or None


def _body_text(soup: BeautifulSoup) -> str:
    for selector in CONTENT_SELECTORS:
        matches = soup.select(selector)
        if matches:
            return "".join(el.get_text() for el in matches)
    # html.parser does not invent a <body>; drop the head so the title stays out
    for element in soup(["head", "title"]):
        if not element.decomposed:
            element.decompose()
    return soup.get_text()


def extract_content(html: str, url: str) -> PageContent:
    """Extract title, body text and metadata from *html* fetched at *url*."""
    soup = BeautifulSoup(html, "html.parser")

    for element in soup(list(NON_CONTENT_TAGS)):
        # nested matches go away together with their parent
        if not element.decomposed:
            element.decompose()

    h1 = _first_text(soup, "h1")
    title = _first_text(soup, "title") or h1

    description_tag = soup.find("meta", attrs={"name": "description"})
    meta_description = description_tag.get("content") if description_tag else None

    content_text = clean_text(_body_text(soup))

    metadata: Dict[str, Any] = {
        "word_count": len(content_text.split()),
        "h1": h1,
        "meta_description": meta_description or None,
        "url": url,
    }
    return PageContent(title=title, content_text=content_text, metadata=metadata)
