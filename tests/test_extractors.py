# File: tests/test_extractors.py
from site_harvest.extractors import (
    FaviconExtractor,
    ImageExtractor,
    LinkExtractor,
    MetaExtractor,
    build_extractors,
)
from site_harvest.models import CrawlFlags, Favicon, ImageItem, MetaTag
from site_harvest.parser.html_parser import parse_html

from conftest import WORDPRESS_HTML

BASE = "http://example.com/blog/"


def test_links_are_absolute_and_unique():
    links = LinkExtractor().extract(parse_html(WORDPRESS_HTML), BASE)
    # mailto/javascript dropped, fragment variant collapses into /about
    assert links == ("http://example.com/about",)


def test_links_keep_document_order():
    html = '<a href="b">B</a><a href="/a">A</a><a href="https://other.org/">X</a><a>no href</a>'
    links = LinkExtractor().extract(parse_html(html), BASE)
    assert links == ("http://example.com/blog/b", "http://example.com/a", "https://other.org/")


def test_images_with_lazy_fallback():
    images = ImageExtractor().extract(parse_html(WORDPRESS_HTML), BASE)
    assert images == (
        ImageItem("http://example.com/img/logo.png", "Logo"),
        ImageItem("http://example.com/img/lazy.png", None),
    )


def test_images_without_source_are_skipped():
    assert ImageExtractor().extract(parse_html('<img alt="x"><img src="">'), BASE) == ()


def test_meta_tags():
    tags = MetaExtractor().extract(parse_html(WORDPRESS_HTML), BASE)
    assert tags == (
        MetaTag("generator", "WordPress 6.4.2"),
        MetaTag("description", "Just a demo"),
        MetaTag("og:title", "Demo Blog"),
    )


def test_favicons():
    icons = FaviconExtractor().extract(parse_html(WORDPRESS_HTML), BASE)
    assert icons == (
        Favicon("http://example.com/favicon.ico", "shortcut icon", None, "image/x-icon"),
        Favicon("http://example.com/touch.png", "apple-touch-icon", "180x180", None),
    )


def test_build_extractors_follows_flags():
    assert [e.field for e in build_extractors(CrawlFlags())] == [
        "links", "images", "meta_tags", "favicons",
    ]
    flags = CrawlFlags(extract_images=False, extract_favicons=False)
    assert [e.field for e in build_extractors(flags)] == ["links", "meta_tags"]
    none = CrawlFlags(extract_links=False, extract_images=False, extract_meta=False, extract_favicons=False)
    assert build_extractors(none) == ()


def test_extraction_is_idempotent():
    flags = CrawlFlags(extract_favicons=False)

    def run(document):
        return {e.field: e.extract(document, BASE) for e in build_extractors(flags)}

    shared = parse_html(WORDPRESS_HTML)
    first = run(parse_html(WORDPRESS_HTML))
    assert run(parse_html(WORDPRESS_HTML)) == first
    assert run(shared) == run(shared) == first
    assert set(first) == {"links", "images", "meta_tags"}
