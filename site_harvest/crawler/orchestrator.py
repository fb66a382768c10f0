# site_harvest/crawler/orchestrator.py
"""
CrawlOrchestrator: drives one crawl session, single-page or multipage.

Multipage sessions walk the frontier one breadth-first level at a time. A
level is processed by at most ``page_workers`` concurrent PageProcessor
calls inside one TaskGroup, so a failing page cancels its siblings; once the
whole level is in, its links are fed back to the frontier in page-index
order. The orchestrator is the only code touching the frontier, so the dedup
check and the enqueue never interleave, and the page order is the same
whatever the worker count.
"""
from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import Dict, Optional

from aiohttp import ClientSession

from site_harvest.aggregator import aggregate_pages, build_performance
from site_harvest.config import EngineConfig
from site_harvest.crawler.fetcher import DocumentFetcher
from site_harvest.crawler.frontier import CrawlFrontier, FrontierEntry
from site_harvest.crawler.processor import PageProcessor
from site_harvest.detect.catalog import SignatureCatalog, default_catalog
from site_harvest.errors import SessionError
from site_harvest.logger import get_logger
from site_harvest.models import CrawlMode, CrawlRequest, PageResult, SessionResult
from site_harvest.parser.html_parser import DocumentParser

__all__ = ["CrawlOrchestrator", "run_session"]

log = get_logger("orchestrator")

DEADLINE_ERROR = "session deadline exceeded"


class CrawlOrchestrator:
    """Асинхронный оркестратор одной сессии обхода."""

    def __init__(
        self,
        request: CrawlRequest,
        config: Optional[EngineConfig] = None,
        *,
        catalog: Optional[SignatureCatalog] = None,
        session: Optional[ClientSession] = None,
    ) -> None:
        self.request = request
        self.config = config or EngineConfig()
        self.catalog = catalog or default_catalog()
        self.session = session
        self._owns_session = session is None
        self.processor: Optional[PageProcessor] = None
        self._results: Dict[int, PageResult] = {}
        self._in_flight: Dict[int, FrontierEntry] = {}

    async def __aenter__(self) -> CrawlOrchestrator:
        if self.session is None:
            self.session = ClientSession(
                headers={"User-Agent": self.config.user_agent},
                raise_for_status=False,
            )
        fetcher = DocumentFetcher(self.session, timeout=self.config.fetch_timeout)
        self.processor = PageProcessor(
            fetcher,
            self.request.flags,
            parser=DocumentParser(self.config.parser_backend),
            catalog=self.catalog,
            harvest_links=self.request.mode is CrawlMode.MULTIPAGE,
            retries=self.config.fetch_retries,
            retry_backoff=self.config.retry_backoff,
            politeness_delay=self.config.politeness_delay,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    # ------------------------------------------------------------------ #
    # public
    # ------------------------------------------------------------------ #

    async def run(self) -> SessionResult:
        if self.processor is None:
            raise RuntimeError("CrawlOrchestrator must be used as an async context manager")
        log.info("Старт сессии: %s (%s, maxPages=%d)", self.request.url,
                 self.request.mode.value, self.request.max_pages)
        started_at = datetime.now(timezone.utc)
        start = time.monotonic()
        termination = "single"
        partial = False
        error: Optional[str] = None

        if self.request.mode is CrawlMode.SINGLE:
            crawl = self._run_single()
        else:
            crawl = self._run_multipage()
        try:
            if self.config.session_deadline:
                termination = await asyncio.wait_for(crawl, timeout=self.config.session_deadline)
            else:
                termination = await crawl
        except asyncio.TimeoutError:
            log.warning("Session %s hit its %.1f s deadline", self.request.url, self.config.session_deadline)
            self._abandon_in_flight(DEADLINE_ERROR)
            termination, partial, error = "deadline", True, DEADLINE_ERROR
        except Exception as exc:
            log.exception("Session %s failed", self.request.url)
            if not self._results:
                raise SessionError(f"Crawl of {self.request.url} failed: {exc}") from exc
            self._abandon_in_flight(f"session aborted: {exc}")
            termination, partial, error = "error", True, str(exc)

        elapsed = time.monotonic() - start
        pages = tuple(self._results[i] for i in sorted(self._results))
        result = SessionResult(
            request=self.request,
            pages=pages,
            summary=aggregate_pages(pages),
            performance=build_performance(
                started_at,
                datetime.now(timezone.utc),
                elapsed,
                len(pages),
                self.config.min_elapsed_seconds,
            ),
            termination=termination,
            partial=partial,
            error=error,
        )
        log.info("Завершено: %d страниц за %.2f с (%.2f стр/с), %s",
                 len(pages), elapsed, result.performance.pages_per_second, termination)
        return result

    # ------------------------------------------------------------------ #
    # internals
    # ------------------------------------------------------------------ #

    async def _run_single(self) -> str:
        entry = FrontierEntry(url=self.request.url, index=0)
        await self._process(entry)
        return "single"

    async def _run_multipage(self) -> str:
        frontier = CrawlFrontier(self.request.max_pages, self.config.follow_scope)
        frontier.seed(self.request.url)
        workers = asyncio.Semaphore(self.config.page_workers)

        while True:
            level = frontier.next_level()
            if not level:
                break
            try:
                async with asyncio.TaskGroup() as group:
                    tasks = [group.create_task(self._process(entry, workers)) for entry in level]
            except ExceptionGroup as failures:
                # siblings are already cancelled and awaited by the group
                raise failures.exceptions[0]
            for entry, task in zip(level, tasks):
                page = task.result()
                frontier.offer_all(
                    page.discovered_links,
                    depth=entry.depth + 1,
                    discovered_from=entry.index,
                )
        return frontier.finish().value

    async def _process(self, entry: FrontierEntry, workers: Optional[asyncio.Semaphore] = None) -> PageResult:
        if workers is None:
            return await self._process_entry(entry)
        async with workers:
            return await self._process_entry(entry)

    async def _process_entry(self, entry: FrontierEntry) -> PageResult:
        assert self.processor is not None
        self._in_flight[entry.index] = entry
        page = await self.processor.process(
            entry.url, depth=entry.depth, discovered_from=entry.discovered_from
        )
        self._in_flight.pop(entry.index, None)
        self._results[entry.index] = page
        return page

    def _abandon_in_flight(self, reason: str) -> None:
        """Record pages cut off mid-fetch as failed so none silently disappears."""
        now = datetime.now(timezone.utc)
        for index, entry in sorted(self._in_flight.items()):
            self._results[index] = PageResult(
                url=entry.url,
                status_code=0,
                fetched_at=now,
                depth=entry.depth,
                discovered_from=entry.discovered_from,
                error=reason,
            )
        self._in_flight.clear()


async def run_session(
    request: CrawlRequest,
    config: Optional[EngineConfig] = None,
    catalog: Optional[SignatureCatalog] = None,
) -> SessionResult:
    """Запускает оркестратор в контексте и возвращает SessionResult."""
    async with CrawlOrchestrator(request, config, catalog=catalog) as orchestrator:
        return await orchestrator.run()
