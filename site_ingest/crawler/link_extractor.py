# site_ingest/crawler/link_extractor.py
"""
Same-domain link discovery for the SiteIngest crawler.
"""
from __future__ import annotations

from typing import List, Optional
from urllib.parse import SplitResult, urljoin, urlsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

from site_ingest.utils import extract_host

_DEFAULT_PORTS = {"http": 80, "https": 443}


def clean_link(url: str) -> Optional[SplitResult]:
    """
    Parse *url* and drop its query string and fragment.

    Returns None when the URL cannot be parsed (bad IPv6 literal, bad port).
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None
    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    if port is not None and port != _DEFAULT_PORTS.get(parts.scheme):
        host = f"{host}:{port}"
    path = parts.path or ("/" if parts.scheme in _DEFAULT_PORTS else "")
    return SplitResult(parts.scheme, host, path, "", "")


def extract_internal_links(html: str, base_url: str) -> List[str]:
    """
    Return the distinct same-host links found in *html* fetched from *base_url*.

    Relative, absolute and protocol-relative hrefs are resolved against
    *base_url*. Links to other hosts, unparseable hrefs and links back to the
    page itself are dropped; query strings and fragments are stripped.
    """
    base = clean_link(base_url)
    if base is None or not base.netloc:
        return []
    base_host = extract_host(base_url)
    base_clean = base.geturl()

    soup = BeautifulSoup(html, "html.parser")
    links: set[str] = set()
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href = tag.get("href")
        if not isinstance(href, str):
            continue
        try:
            absolute = urljoin(base_url, href.strip())
        except ValueError:
            continue
        cleaned = clean_link(absolute)
        if cleaned is None or cleaned.hostname != base_host:
            continue
        link = cleaned.geturl()
        if link != base_clean:
            links.add(link)
    return list(links)
