"""site_harvest.crawler: Загрузка, обработка страниц, фронтир и оркестрация сессии."""

from .fetcher import DocumentFetcher, FetchError, FetchErrorReason, FetchResponse
from .frontier import CrawlFrontier, FrontierEntry, FrontierState
from .orchestrator import CrawlOrchestrator, run_session
from .processor import PageProcessor

__all__ = [
    "CrawlFrontier",
    "CrawlOrchestrator",
    "DocumentFetcher",
    "FetchError",
    "FetchErrorReason",
    "FetchResponse",
    "FrontierEntry",
    "FrontierState",
    "PageProcessor",
    "run_session",
]
