# === FILE: site_harvest/parser/html_parser.py ===
"""HTML parsing for SiteHarvest.

:class:`DocumentParser` turns raw markup into a :class:`Document`, a thin
query layer over BeautifulSoup that the extractors and detectors share:

* ``select_all(tag)``: every element with that tag name, in document order.
* ``attr(node, name)``: attribute value as a plain string (multi-valued
  attributes such as ``rel`` are joined with a space).
* ``text(node)``: text content of a node, whitespace collapsed.

Parsing is lenient: broken markup yields whatever structure the tree builder
could recover, and a builder crash degrades to an empty document instead of
an exception.
"""
from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Iterator, Optional, Union

from bs4 import BeautifulSoup
from bs4.element import Comment, Doctype, NavigableString, Tag

from site_harvest.logger import get_logger

__all__: Sequence[str] = ("Document", "DocumentParser", "parse_html")

log = get_logger("parser")

_WS_RE = re.compile(r"\s+")
_INVISIBLE = frozenset({"script", "style", "noscript", "template", "head", "title"})


class Document:
    """Queryable, read-only view over a parsed HTML tree."""

    __slots__ = ("_soup", "_html")

    def __init__(self, soup: BeautifulSoup, html: str) -> None:
        self._soup = soup
        self._html = html

    @property
    def html(self) -> str:
        """The raw markup the document was built from."""
        return self._html

    def select_all(self, tag: str) -> list[Tag]:
        return [node for node in self._soup.find_all(tag) if isinstance(node, Tag)]

    @staticmethod
    def attr(node: Tag, name: str) -> Optional[str]:
        value = node.get(name)
        if value is None:
            return None
        if isinstance(value, (list, tuple)):
            return " ".join(str(v) for v in value)
        return str(value)

    @staticmethod
    def text(node: Tag) -> str:
        return _WS_RE.sub(" ", node.get_text(" ")).strip()

    @property
    def title(self) -> str:
        node = self._soup.find("title")
        return self.text(node) if isinstance(node, Tag) else ""

    def visible_text(self) -> str:
        """Text a reader would see: script, style and similar containers skipped."""
        return " ".join(chunk for chunk in self._iter_visible_strings())

    def _iter_visible_strings(self) -> Iterator[str]:
        for string in self._soup.find_all(string=True):
            if isinstance(string, (Comment, Doctype)) or not isinstance(string, NavigableString):
                continue
            if any(parent.name in _INVISIBLE for parent in string.parents if isinstance(parent, Tag)):
                continue
            chunk = _WS_RE.sub(" ", str(string)).strip()
            if chunk:
                yield chunk


class DocumentParser:
    """Builds :class:`Document` objects with a configurable tree builder."""

    def __init__(self, backend: str = "html.parser") -> None:
        self.backend = backend

    def parse(self, html: Union[str, bytes, None]) -> Document:
        if html is None:
            html = ""
        if isinstance(html, bytes):
            html = html.decode("utf-8", errors="replace")
        try:
            soup = BeautifulSoup(html, self.backend)
        except Exception as exc:
            # tree builders may still choke on pathological input; degrade to an empty tree
            log.warning("HTML parsing failed (%s), continuing with an empty document", exc)
            soup = BeautifulSoup("", "html.parser")
        return Document(soup, html)


def parse_html(html: Union[str, bytes, None], backend: str = "html.parser") -> Document:
    """Shortcut for ``DocumentParser(backend).parse(html)``."""
    return DocumentParser(backend).parse(html)
