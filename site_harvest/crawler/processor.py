# site_harvest/crawler/processor.py
"""
PageProcessor: fetch → parse → extractors → detectors for one URL.

The set of enabled extractors and detectors is fixed when the processor is
built (once per crawl request), so ``process`` runs a plain list of units
without per-flag branching. ``process`` never raises for page-level trouble:
fetch failures and processing faults come back as a degraded PageResult.
"""
from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from site_harvest.crawler.fetcher import DocumentFetcher, FetchError, FetchOutcome
from site_harvest.detect.catalog import SignatureCatalog, default_catalog
from site_harvest.detect.detectors import CMSDetector, PageSignals, TechnologyDetector
from site_harvest.extractors import Extractor, LinkExtractor, build_extractors
from site_harvest.logger import get_logger
from site_harvest.models import CrawlFlags, PageResult
from site_harvest.parser.html_parser import Document, DocumentParser
from site_harvest.utils import resolve_url

__all__ = ["PageProcessor"]

log = get_logger("processor")

_MAX_BACKOFF = 60.0


class PageProcessor:
    """Turns a URL into a :class:`PageResult`."""

    def __init__(
        self,
        fetcher: DocumentFetcher,
        flags: CrawlFlags,
        *,
        parser: Optional[DocumentParser] = None,
        catalog: Optional[SignatureCatalog] = None,
        harvest_links: bool = False,
        retries: int = 0,
        retry_backoff: float = 1.0,
        politeness_delay: float = 0.0,
    ) -> None:
        self.fetcher = fetcher
        self.parser = parser or DocumentParser()
        self.flags = flags
        self.retries = retries
        self.retry_backoff = retry_backoff
        self.politeness_delay = politeness_delay

        catalog = catalog or default_catalog()
        self.extractors: Tuple[Extractor, ...] = build_extractors(flags)
        detectors = []
        if flags.detect_technologies:
            detectors.append(TechnologyDetector(catalog))
        if flags.detect_cms:
            detectors.append(CMSDetector(catalog))
        self.detectors: Tuple[Any, ...] = tuple(detectors)
        # the frontier needs links even when the caller switched link output off
        self._harvester: Optional[LinkExtractor] = (
            LinkExtractor() if harvest_links and not flags.extract_links else None
        )

        self._rate_lock = asyncio.Lock()
        self._last_request_ts = 0.0

    async def process(
        self, url: str, *, depth: int = 0, discovered_from: Optional[int] = None
    ) -> PageResult:
        outcome = await self._fetch(url)
        fetched_at = datetime.now(timezone.utc)
        if isinstance(outcome, FetchError):
            log.warning("Page %s failed: %s", url, outcome.describe())
            return self._failed(url, fetched_at, outcome.status_code, outcome.describe(),
                                depth, discovered_from, outcome.url, outcome.content_type)
        try:
            return self._build(url, outcome, fetched_at, depth, discovered_from)
        except Exception as exc:
            log.exception("Processing %s failed", url)
            return self._failed(url, fetched_at, outcome.status_code, f"processing failed: {exc}",
                                depth, discovered_from, outcome.url, outcome.content_type)

    # ------------------------------------------------------------------ #
    # internals
    # ------------------------------------------------------------------ #

    def _build(self, url: str, response, fetched_at: datetime, depth: int,
               discovered_from: Optional[int]) -> PageResult:
        document = self.parser.parse(response.body)
        base_url = self._base_url(document, response.url)

        fields: Dict[str, Any] = {}
        for extractor in self.extractors:
            fields[extractor.field] = extractor.extract(document, base_url)
        if self.detectors:
            signals = PageSignals.collect(document, response.headers)
            for detector in self.detectors:
                fields[detector.field] = detector.detect(document, response.headers, signals)

        if self._harvester is not None:
            discovered = self._harvester.extract(document, base_url)
        else:
            discovered = fields.get("links", ())

        log.debug("Processed %s (HTTP %d, %d links)", url, response.status_code, len(discovered))
        return PageResult(
            url=url,
            status_code=response.status_code,
            fetched_at=fetched_at,
            title=document.title,
            raw_html=response.body,
            extracted_text=document.visible_text(),
            final_url=response.url,
            content_type=response.content_type or None,
            depth=depth,
            discovered_from=discovered_from,
            discovered_links=discovered,
            **fields,
        )

    @staticmethod
    def _base_url(document: Document, response_url: str) -> str:
        for tag in document.select_all("base"):
            resolved = resolve_url(response_url, Document.attr(tag, "href"))
            if resolved:
                return resolved
        return response_url

    @staticmethod
    def _failed(url: str, fetched_at: datetime, status_code: int, error: str, depth: int,
                discovered_from: Optional[int], final_url: Optional[str] = None,
                content_type: Optional[str] = None) -> PageResult:
        return PageResult(
            url=url,
            status_code=status_code,
            fetched_at=fetched_at,
            final_url=final_url,
            content_type=content_type or None,
            depth=depth,
            discovered_from=discovered_from,
            error=error,
        )

    async def _fetch(self, url: str) -> FetchOutcome:
        attempts = 0
        while True:
            await self._wait_for_politeness()
            outcome = await self.fetcher.fetch(url)
            if not isinstance(outcome, FetchError) or not outcome.retryable or attempts >= self.retries:
                return outcome
            attempts += 1
            backoff = min(_MAX_BACKOFF, self.retry_backoff * 2 ** (attempts - 1))
            log.debug("Retry %d/%d for %s after %.2f s (%s)", attempts, self.retries, url,
                      backoff, outcome.describe())
            await asyncio.sleep(backoff)

    async def _wait_for_politeness(self) -> None:
        if self.politeness_delay <= 0:
            return
        async with self._rate_lock:
            wait = self.politeness_delay - (time.monotonic() - self._last_request_ts)
            if wait > 0:
                await asyncio.sleep(wait)
            self._last_request_ts = time.monotonic()
