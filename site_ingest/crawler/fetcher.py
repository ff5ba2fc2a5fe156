# site_ingest/crawler/fetcher.py
"""
Fetcher module: one bounded-time HTTP GET per URL, no retries.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_ingest.logger import get_logger

DEFAULT_TIMEOUT: float = 10.0
DEFAULT_USER_AGENT: str = "SiteIngestBot/1.0"

log = get_logger("fetcher")


class Fetcher:
    """Fetches page HTML through a shared :class:`aiohttp.ClientSession`.

    Usable as an async context manager; when no session is passed in, one is
    created on enter and closed on exit. Timeout and User-Agent go with every
    request, so an injected session gets them too.
    """

    def __init__(
        self,
        session: Optional[ClientSession] = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.session = session
        self.timeout = timeout
        self.user_agent = user_agent
        self._owns_session = session is None

    async def __aenter__(self) -> Fetcher:
        if self.session is None:
            self.session = ClientSession(raise_for_status=False)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()
        if self._owns_session:
            self.session = None

    async def fetch(self, url: str) -> Optional[str]:
        """
        GET *url* and return the body text on a 2xx response.

        Non-2xx statuses, timeouts and network errors are logged and
        reported as None; nothing is retried.
        """
        if self.session is None:
            raise RuntimeError("Session not initialized")
        try:
            async with self.session.get(
                url,
                timeout=ClientTimeout(total=self.timeout),
                headers={"User-Agent": self.user_agent},
            ) as resp:
                if not 200 <= resp.status < 300:
                    log.warning("Failed to fetch %s: %s", url, resp.status)
                    return None
                return await resp.text(errors="replace")
        except asyncio.TimeoutError:
            log.warning("Timed out fetching %s after %.1f s", url, self.timeout)
            return None
        except (ClientError, ValueError) as e:
            log.warning("Error fetching %s: %s", url, e)
            return None
