# site_ingest/crawler/frontier.py
"""
Crawl frontier: the visited set plus the FIFO queue of pending URLs.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Iterable, Optional, Set

from site_ingest.utils import frontier_key


@dataclass(slots=True)
class Frontier:
    """Frontier state owned by exactly one crawl invocation.

    URLs are compared through :func:`~site_ingest.utils.frontier_key`, so a
    page reachable as both ``/about`` and ``/about/`` is visited once.
    """

    visited: Set[str] = field(default_factory=set)
    queue: Deque[str] = field(default_factory=deque)
    _queued: Set[str] = field(default_factory=set, repr=False)

    @classmethod
    def seeded(cls, root_url: str) -> Frontier:
        frontier = cls()
        frontier.enqueue([root_url])
        return frontier

    def __bool__(self) -> bool:
        return bool(self.queue)

    def pop(self) -> Optional[str]:
        """Dequeue the next unvisited URL and mark it visited.

        Already-visited entries are discarded on the way. Returns None once
        the queue is exhausted.
        """
        while self.queue:
            url = self.queue.popleft()
            key = frontier_key(url)
            self._queued.discard(key)
            if key in self.visited:
                continue
            self.visited.add(key)
            return url
        return None

    def is_visited(self, url: str) -> bool:
        return frontier_key(url) in self.visited

    def enqueue(self, links: Iterable[str]) -> int:
        """Append links that are neither visited nor already queued; return how many."""
        added = 0
        for link in links:
            key = frontier_key(link)
            if key in self.visited or key in self._queued:
                continue
            self._queued.add(key)
            self.queue.append(link)
            added += 1
        return added
