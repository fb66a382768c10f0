# site_harvest/crawler/frontier.py
"""
Breadth-first crawl frontier for multipage sessions.

Owns the visited set and the FIFO queue of pending URLs for exactly one
session. Every accepted URL gets a sequential index at enqueue time; the
index is the URL's slot in the final page list, so results can be put back
in discovery order however they complete.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Iterable, List, Optional, Set

from site_harvest.logger import get_logger
from site_harvest.utils import in_scope, normalize_url

__all__ = ["FrontierEntry", "FrontierState", "CrawlFrontier"]

log = get_logger("frontier")


class FrontierState(str, Enum):
    EMPTY = "empty"
    SEEDED = "seeded"
    DRAINING = "draining"
    EXHAUSTED = "exhausted"
    CAPPED = "capped"


@dataclass(frozen=True, slots=True)
class FrontierEntry:
    url: str
    index: int
    depth: int = 0
    discovered_from: Optional[int] = None


class CrawlFrontier:
    """Visited set + pending queue + page budget + link-following scope."""

    def __init__(self, max_pages: int, scope: str = "registrable_domain") -> None:
        if max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        self.max_pages = max_pages
        self.scope = scope
        self.seed_url: Optional[str] = None
        self._visited: Set[str] = set()
        self._queue: Deque[FrontierEntry] = deque()
        self._accepted = 0
        self._refused_by_budget = False
        self._state = FrontierState.EMPTY

    # ------------------------------------------------------------------ #
    # state
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> FrontierState:
        return self._state

    @property
    def visited(self) -> frozenset[str]:
        return frozenset(self._visited)

    @property
    def accepted(self) -> int:
        """URLs processed or queued so far; never exceeds ``max_pages``."""
        return self._accepted

    @property
    def pending(self) -> int:
        return len(self._queue)

    @property
    def budget_reached(self) -> bool:
        return self._accepted >= self.max_pages

    def __bool__(self) -> bool:
        return bool(self._queue)

    # ------------------------------------------------------------------ #
    # operations
    # ------------------------------------------------------------------ #

    def seed(self, url: str) -> FrontierEntry:
        if self._state is not FrontierState.EMPTY:
            raise RuntimeError("frontier already seeded")
        self.seed_url = normalize_url(url)
        entry = self._accept(self.seed_url, depth=0, discovered_from=None)
        self._state = FrontierState.SEEDED
        return entry

    def offer(self, url: str, *, depth: int, discovered_from: Optional[int]) -> Optional[FrontierEntry]:
        """Enqueue *url* if unseen, in scope and within budget; return the entry or None."""
        if self.seed_url is None:
            raise RuntimeError("frontier is not seeded")
        norm = normalize_url(url)
        if norm in self._visited:
            return None
        if not in_scope(norm, self.seed_url, self.scope):
            return None
        if self.budget_reached:
            self._refused_by_budget = True
            return None
        return self._accept(norm, depth=depth, discovered_from=discovered_from)

    def offer_all(self, urls: Iterable[str], *, depth: int, discovered_from: Optional[int]) -> List[FrontierEntry]:
        accepted = []
        for url in urls:
            entry = self.offer(url, depth=depth, discovered_from=discovered_from)
            if entry is not None:
                accepted.append(entry)
        return accepted

    def next(self) -> Optional[FrontierEntry]:
        """Dequeue the oldest pending entry (FIFO)."""
        if not self._queue:
            self._settle()
            return None
        self._state = FrontierState.DRAINING
        return self._queue.popleft()

    def next_level(self) -> List[FrontierEntry]:
        """Dequeue every pending entry that shares the shallowest pending depth."""
        if not self._queue:
            self._settle()
            return []
        self._state = FrontierState.DRAINING
        depth = self._queue[0].depth
        level = []
        while self._queue and self._queue[0].depth == depth:
            level.append(self._queue.popleft())
        return level

    def finish(self) -> FrontierState:
        """Mark the traversal finished and return the terminal state."""
        self._settle()
        return self._state

    # ------------------------------------------------------------------ #
    # internals
    # ------------------------------------------------------------------ #

    def _accept(self, url: str, *, depth: int, discovered_from: Optional[int]) -> FrontierEntry:
        entry = FrontierEntry(url=url, index=self._accepted, depth=depth, discovered_from=discovered_from)
        self._visited.add(url)
        self._queue.append(entry)
        self._accepted += 1
        log.debug("Enqueued #%d %s (depth %d)", entry.index, url, depth)
        return entry

    def _settle(self) -> None:
        if self._queue:
            return
        if self._state in (FrontierState.EXHAUSTED, FrontierState.CAPPED):
            return
        self._state = FrontierState.CAPPED if self._refused_by_budget else FrontierState.EXHAUSTED
