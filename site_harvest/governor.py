# File: site_harvest/governor.py
"""site_harvest.governor: Контроль допуска сессий (admission control).

Не более ``ceiling`` сессий выполняются одновременно. Сверх потолка запросы
ждут в FIFO-очереди глубиной до ``max_queue``; когда и очередь полна, запрос
сразу получает :class:`CapacityExceededError`. При освобождении слот
передаётся первому ожидающему напрямую, так что ``active <= ceiling`` всегда.
"""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Optional

from site_harvest.errors import CapacityExceededError
from site_harvest.logger import get_logger

__all__ = ["ConcurrencyGovernor", "Permit", "LoadStatus"]

log = get_logger("governor")


@dataclass(frozen=True, slots=True)
class LoadStatus:
    active_sessions: int
    ceiling: int
    queue_depth: int
    max_queue_depth: int

    def as_dict(self) -> Dict[str, int]:
        return {
            "activeSessions": self.active_sessions,
            "ceiling": self.ceiling,
            "queueDepth": self.queue_depth,
            "maxQueueDepth": self.max_queue_depth,
        }


class Permit:
    """Право на одну сессию. Освобождается ровно один раз, повторный release - no-op."""

    __slots__ = ("_governor", "_released")

    def __init__(self, governor: ConcurrencyGovernor) -> None:
        self._governor = governor
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._governor._release()

    async def __aenter__(self) -> Permit:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()


class ConcurrencyGovernor:
    """Ограничивает число одновременных сессий и длину очереди ожидания."""

    def __init__(self, ceiling: int, max_queue: int = 0, queue_timeout: Optional[float] = None) -> None:
        if ceiling < 1:
            raise ValueError("ceiling must be >= 1")
        if max_queue < 0:
            raise ValueError("max_queue must be >= 0")
        self.ceiling = ceiling
        self.max_queue = max_queue
        self.queue_timeout = queue_timeout
        self._active = 0
        self._waiters: Deque[asyncio.Future[None]] = deque()

    @property
    def active(self) -> int:
        return self._active

    @property
    def queued(self) -> int:
        return sum(1 for w in self._waiters if not w.done())

    def status(self) -> LoadStatus:
        return LoadStatus(self._active, self.ceiling, self.queued, self.max_queue)

    async def admit(self) -> Permit:
        """Вернуть Permit сразу, после ожидания в очереди, или бросить CapacityExceededError."""
        if self._active < self.ceiling and not self.queued:
            self._active += 1
            return Permit(self)
        if self.queued >= self.max_queue:
            log.warning("Rejecting session: %d active, %d queued", self._active, self.queued)
            raise CapacityExceededError()

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        log.debug("Session queued (%d waiting)", self.queued)
        try:
            if self.queue_timeout is not None:
                await asyncio.wait_for(asyncio.shield(waiter), timeout=self.queue_timeout)
            else:
                await waiter
        except asyncio.TimeoutError:
            if waiter.done() and not waiter.cancelled():
                # slot was handed over right as the timeout fired
                return Permit(self)
            waiter.cancel()
            self._discard(waiter)
            raise CapacityExceededError("Timed out waiting for a free crawl slot") from None
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                self._release()
            else:
                waiter.cancel()
                self._discard(waiter)
            raise
        return Permit(self)

    def _discard(self, waiter: asyncio.Future[None]) -> None:
        try:
            self._waiters.remove(waiter)
        except ValueError:
            pass

    def _release(self) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                # hand the slot straight over: _active stays the same
                waiter.set_result(None)
                return
        self._active -= 1
        if self._active < 0:
            raise RuntimeError("permit released more times than admitted")
