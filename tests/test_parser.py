# File: tests/test_parser.py
import pytest

from site_harvest.parser.html_parser import Document, DocumentParser, parse_html

from conftest import WORDPRESS_HTML


@pytest.mark.parametrize("backend", ["html.parser", "lxml"])
def test_title_and_visible_text(backend):
    doc = DocumentParser(backend).parse(WORDPRESS_HTML)
    assert doc.title == "Demo Blog"
    text = doc.visible_text()
    assert text.startswith("Hello world")
    assert "About" in text
    assert "color: red" not in text
    assert "not text" not in text
    assert "not visible" not in text
    assert "Demo Blog" not in text


def test_broken_markup_is_recovered():
    doc = parse_html("<html><body><p>Hello <b>world<p>again")
    assert doc.visible_text() == "Hello world again"
    assert doc.title == ""


def test_bytes_and_none_input():
    assert parse_html("<title>Тест</title>".encode("utf-8")).title == "Тест"
    empty = parse_html(None)
    assert empty.html == ""
    assert empty.select_all("a") == []
    assert empty.visible_text() == ""


def test_attr_joins_multi_valued_attributes():
    doc = parse_html('<link rel="shortcut icon" href="/f.ico"><a class="x y" href="/a">A</a>')
    link = doc.select_all("link")[0]
    assert Document.attr(link, "rel") == "shortcut icon"
    assert Document.attr(link, "href") == "/f.ico"
    assert Document.attr(link, "missing") is None
    assert Document.text(doc.select_all("a")[0]) == "A"


def test_document_keeps_raw_html():
    assert parse_html(WORDPRESS_HTML).html == WORDPRESS_HTML
