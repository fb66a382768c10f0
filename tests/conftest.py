# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from aiohttp import web

from site_harvest.aggregator import aggregate_pages, build_performance
from site_harvest.models import (
    CMSInfo,
    CrawlMode,
    CrawlRequest,
    Favicon,
    ImageItem,
    MetaTag,
    PageResult,
    SessionResult,
)

FIXED_TS = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    """Register custom markers so that `--strict-markers` does not fail."""
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (deselect with '-m \"not slow\"')",
    )


# --------------------------------------------------------------------------- #
#                               Sample markup                                 #
# --------------------------------------------------------------------------- #

WORDPRESS_HTML = """<!DOCTYPE html>
<html>
<head>
  <title>  Demo   Blog </title>
  <meta charset="utf-8">
  <meta name="generator" content="WordPress 6.4.2">
  <meta name="description" content=" Just a demo ">
  <meta property="og:title" content="Demo Blog">
  <link rel="shortcut icon" href="/favicon.ico" type="image/x-icon">
  <link rel="apple-touch-icon" href="/touch.png" sizes="180x180">
  <link rel="stylesheet" href="/wp-content/plugins/akismet/style.css">
  <script src="/wp-includes/js/jquery/jquery-3.7.1.min.js"></script>
  <script src="/wp-content/plugins/contact-form-7/includes/js/index.js"></script>
  <style>body { color: red; }</style>
</head>
<body>
  <h1>Hello <b>world</b></h1>
  <!-- not visible -->
  <a href="/about">About</a>
  <a href="/about#team">Team</a>
  <a href="mailto:someone@example.com">Mail</a>
  <a href="javascript:void(0)">JS</a>
  <img src="/img/logo.png" alt="Logo">
  <img data-src="/img/lazy.png">
  <script>var hidden = "not text";</script>
</body>
</html>
"""


def html_page(title: str, links: list[str] = (), body: str = "") -> str:
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in links)
    return f"<html><head><title>{title}</title></head><body>{body}{anchors}</body></html>"


# --------------------------------------------------------------------------- #
#                               Local servers                                 #
# --------------------------------------------------------------------------- #


async def _serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()


@pytest_asyncio.fixture
async def serve(unused_tcp_port: int) -> AsyncIterator[Callable[[web.Application], Awaitable[str]]]:
    """Factory: ``base = await serve(app)`` starts *app*; stopped after the test."""
    generators = []

    async def _start(app: web.Application) -> str:
        gen = _serve_app(app, unused_tcp_port)
        generators.append(gen)
        return await gen.__anext__()

    yield _start
    for gen in generators:
        await gen.aclose()


def html_response(text: str, **kwargs) -> web.Response:
    return web.Response(text=text, content_type="text/html", **kwargs)


def site_app() -> web.Application:
    """Small site used by crawl tests.

    ::

        /  -> /a, /b, /a#top, external link
        /a -> /c, /
        /b -> /c, /d
        /c, /d -> nothing
    """
    app = web.Application()
    pages = {
        "/": html_page("Root", ["/a", "/b", "/a#top", "http://other.invalid/page"],
                       body='<img src="/logo.png" alt="logo">'),
        "/a": html_page("A", ["/c", "/"]),
        "/b": html_page("B", ["/c", "/d"]),
        "/c": html_page("C"),
        "/d": html_page("D"),
    }

    def make_handler(text: str):
        async def handler(_):
            return html_response(text)
        return handler

    for path, text in pages.items():
        app.router.add_get(path, make_handler(text))
    return app


@pytest_asyncio.fixture
async def site_server(serve) -> str:
    return await serve(site_app())


# --------------------------------------------------------------------------- #
#                              Model fixtures                                 #
# --------------------------------------------------------------------------- #


@pytest.fixture()
def sample_pages() -> tuple[PageResult, ...]:
    root = PageResult(
        url="http://example.com/",
        status_code=200,
        fetched_at=FIXED_TS,
        title="Root",
        raw_html="<html></html>",
        extracted_text="Root",
        links=("http://example.com/a", "http://example.com/b"),
        images=(ImageItem("http://example.com/logo.png", "Logo"),),
        meta_tags=(MetaTag("description", "Demo"),),
        favicons=(Favicon("http://example.com/favicon.ico", "icon"),),
        technologies=frozenset({"jQuery"}),
        cms=CMSInfo("WordPress", "6.4.2", ("akismet",)),
        final_url="http://example.com/",
        content_type="text/html",
    )
    child = PageResult(
        url="http://example.com/a",
        status_code=200,
        fetched_at=FIXED_TS,
        title="A",
        links=("http://example.com/", "http://example.com/b"),
        favicons=(Favicon("http://example.com/favicon.ico", "icon"),),
        technologies=frozenset({"jQuery", "Nginx"}),
        depth=1,
        discovered_from=0,
    )
    failed = PageResult(
        url="http://example.com/b",
        status_code=500,
        fetched_at=FIXED_TS,
        depth=1,
        discovered_from=0,
        error="http_status: HTTP 500",
    )
    return root, child, failed


@pytest.fixture()
def session_result(sample_pages) -> SessionResult:
    request = CrawlRequest(url="http://example.com/", mode=CrawlMode.MULTIPAGE, max_pages=3)
    return SessionResult(
        request=request,
        pages=sample_pages,
        summary=aggregate_pages(sample_pages),
        performance=build_performance(FIXED_TS, FIXED_TS, 1.5, len(sample_pages)),
        termination="capped",
    )
