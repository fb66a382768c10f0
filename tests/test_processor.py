# File: tests/test_processor.py
"""PageProcessor против заглушки загрузчика: без сети."""
import pytest

from site_harvest.crawler.fetcher import FetchError, FetchErrorReason, FetchResponse
from site_harvest.crawler.processor import PageProcessor
from site_harvest.models import CMSInfo, CrawlFlags, ImageItem
from site_harvest.parser.html_parser import DocumentParser

from conftest import WORDPRESS_HTML

URL = "http://example.com/blog/"


class StubFetcher:
    """Отдаёт заранее заданные ответы по очереди и считает вызовы."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def fetch(self, url):
        self.calls += 1
        if len(self.outcomes) > 1:
            return self.outcomes.pop(0)
        return self.outcomes[0]


def ok(body: str = WORDPRESS_HTML, headers=None) -> FetchResponse:
    return FetchResponse(URL, 200, headers or {"server": "nginx"}, body, "text/html")


def http_error(status: int) -> FetchError:
    return FetchError(URL, FetchErrorReason.HTTP_STATUS, f"HTTP {status}", status_code=status)


@pytest.mark.asyncio()
async def test_full_extraction():
    page = await PageProcessor(StubFetcher(ok()), CrawlFlags()).process(URL)
    assert page.ok
    assert page.status_code == 200
    assert page.title == "Demo Blog"
    assert page.raw_html == WORDPRESS_HTML
    assert page.extracted_text.startswith("Hello world")
    assert page.links == ("http://example.com/about",)
    assert page.images[0] == ImageItem("http://example.com/img/logo.png", "Logo")
    assert len(page.meta_tags) == 3
    assert len(page.favicons) == 2
    assert {"jQuery", "Nginx"} <= page.technologies
    assert page.cms == CMSInfo("WordPress", "6.4.2", ("akismet", "contact-form-7"))
    assert page.final_url == URL
    assert page.content_type == "text/html"


@pytest.mark.asyncio()
async def test_disabled_units_leave_fields_empty():
    flags = CrawlFlags(
        extract_images=False,
        extract_links=False,
        extract_meta=False,
        extract_favicons=False,
        detect_technologies=False,
        detect_cms=False,
    )
    page = await PageProcessor(StubFetcher(ok()), flags).process(URL)
    assert page.ok
    assert page.title == "Demo Blog"
    assert page.links == ()
    assert page.images == ()
    assert page.meta_tags == ()
    assert page.favicons == ()
    assert page.technologies == frozenset()
    assert page.cms == CMSInfo()
    assert page.discovered_links == ()


@pytest.mark.asyncio()
async def test_links_harvested_for_frontier_when_output_disabled():
    processor = PageProcessor(StubFetcher(ok()), CrawlFlags(extract_links=False), harvest_links=True)
    page = await processor.process(URL, depth=2, discovered_from=5)
    assert page.links == ()
    assert page.discovered_links == ("http://example.com/about",)
    assert (page.depth, page.discovered_from) == (2, 5)


@pytest.mark.asyncio()
async def test_base_href_is_honoured():
    body = '<base href="http://cdn.example.com/root/"><a href="page">P</a>'
    page = await PageProcessor(StubFetcher(ok(body)), CrawlFlags()).process(URL)
    assert page.links == ("http://cdn.example.com/root/page",)


@pytest.mark.asyncio()
async def test_fetch_error_gives_degraded_page():
    page = await PageProcessor(StubFetcher(http_error(500)), CrawlFlags()).process(URL)
    assert not page.ok
    assert page.status_code == 500
    assert page.error == "http_status: HTTP 500"
    assert page.title == ""
    assert page.links == ()
    assert page.cms == CMSInfo()


@pytest.mark.asyncio()
async def test_retries_transient_errors():
    fetcher = StubFetcher(http_error(503), http_error(503), ok())
    processor = PageProcessor(fetcher, CrawlFlags(), retries=3, retry_backoff=0)
    page = await processor.process(URL)
    assert page.ok
    assert fetcher.calls == 3


@pytest.mark.asyncio()
async def test_no_retry_for_client_errors():
    fetcher = StubFetcher(http_error(404), ok())
    page = await PageProcessor(fetcher, CrawlFlags(), retries=3, retry_backoff=0).process(URL)
    assert page.status_code == 404
    assert fetcher.calls == 1


@pytest.mark.asyncio()
async def test_retries_are_bounded():
    fetcher = StubFetcher(http_error(503))
    page = await PageProcessor(fetcher, CrawlFlags(), retries=2, retry_backoff=0).process(URL)
    assert page.status_code == 503
    assert fetcher.calls == 3


class ExplodingParser(DocumentParser):
    def parse(self, html):
        raise RuntimeError("parser exploded")


@pytest.mark.asyncio()
async def test_processing_fault_is_contained():
    processor = PageProcessor(StubFetcher(ok()), CrawlFlags(), parser=ExplodingParser())
    page = await processor.process(URL)
    assert page.status_code == 200
    assert page.error == "processing failed: parser exploded"
    assert not page.ok
