# File: site_harvest/aggregator.py
"""site_harvest.aggregator: Сводка по сессии и метрики производительности.

Все счётчики - точные суммы и дедупликации по списку страниц, без оценок.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Sequence, Set

from site_harvest.models import CMSInfo, Favicon, PageResult, Performance, SessionSummary

__all__ = ["aggregate_pages", "cms_verdict", "build_performance"]


def _dedupe_favicons(pages: Sequence[PageResult]) -> tuple[Favicon, ...]:
    """Иконки без повторов по href, в порядке первого появления."""
    seen: Dict[str, Favicon] = {}
    for page in pages:
        for icon in page.favicons:
            seen.setdefault(icon.href, icon)
    return tuple(seen.values())


def cms_verdict(pages: Sequence[PageResult]) -> CMSInfo:
    """Первый определённый CMS по порядку обхода, иначе ``unknown``."""
    for page in pages:
        if page.cms.detected:
            return page.cms
    return CMSInfo()


def aggregate_pages(pages: Sequence[PageResult]) -> SessionSummary:
    """Собирает SessionSummary по страницам сессии."""
    technologies: Set[str] = set()
    unique_links: Set[str] = set()
    for page in pages:
        technologies.update(page.technologies)
        unique_links.update(page.links)
    successful = sum(1 for p in pages if p.ok)
    return SessionSummary(
        total_pages=len(pages),
        successful_pages=successful,
        failed_pages=len(pages) - successful,
        total_links=sum(len(p.links) for p in pages),
        unique_links=len(unique_links),
        total_images=sum(len(p.images) for p in pages),
        total_meta_tags=sum(len(p.meta_tags) for p in pages),
        total_favicons=sum(len(p.favicons) for p in pages),
        technologies=tuple(sorted(technologies)),
        favicons=_dedupe_favicons(pages),
        cms=cms_verdict(pages),
    )


def build_performance(
    start_time: datetime,
    end_time: datetime,
    elapsed_seconds: float,
    page_count: int,
    min_elapsed_seconds: float = 0.001,
) -> Performance:
    """Метрики сессии; время для pages/s снизу ограничено *min_elapsed_seconds*."""
    elapsed = max(elapsed_seconds, min_elapsed_seconds)
    return Performance(
        start_time=start_time,
        end_time=end_time,
        total_duration_ms=max(elapsed_seconds, 0.0) * 1000.0,
        pages_per_second=page_count / elapsed,
    )
