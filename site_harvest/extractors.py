# File: site_harvest/extractors.py
"""site_harvest.extractors: Независимые извлекатели ссылок, изображений, meta-тегов и иконок.

Каждый извлекатель принимает ``(Document, base_url)`` и возвращает кортеж
элементов в порядке документа. Общего изменяемого состояния нет, поэтому
порядок и параллельность запуска не важны.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, Tuple

from site_harvest.models import CrawlFlags, Favicon, ImageItem, MetaTag
from site_harvest.parser.html_parser import Document
from site_harvest.utils import remove_duplicates, resolve_url

__all__: Sequence[str] = (
    "Extractor",
    "LinkExtractor",
    "ImageExtractor",
    "MetaExtractor",
    "FaviconExtractor",
    "build_extractors",
)


class Extractor(Protocol):
    """Общий контракт извлекателя: ``field`` - имя поля PageResult для результата."""

    field: str

    def extract(self, document: Document, base_url: str) -> Tuple[Any, ...]: ...


class LinkExtractor:
    """Все ``<a href>``: абсолютные, нормализованные, без повторов; битые ссылки отбрасываются."""

    field = "links"

    def extract(self, document: Document, base_url: str) -> Tuple[str, ...]:
        links = []
        for tag in document.select_all("a"):
            url = resolve_url(base_url, Document.attr(tag, "href"))
            if url is not None:
                links.append(url)
        return tuple(remove_duplicates(links))


class ImageExtractor:
    """Все ``<img src>`` с необязательным ``alt``; ``data-src`` - запасной источник."""

    field = "images"

    def extract(self, document: Document, base_url: str) -> Tuple[ImageItem, ...]:
        images = []
        for tag in document.select_all("img"):
            src = Document.attr(tag, "src") or Document.attr(tag, "data-src")
            url = resolve_url(base_url, src) if src else None
            if url is None:
                continue
            images.append(ImageItem(src=url, alt=Document.attr(tag, "alt")))
        return tuple(images)


class MetaExtractor:
    """Пары ``<meta name|property … content=…>``; ``property`` (Open Graph) считается именем."""

    field = "meta_tags"

    def extract(self, document: Document, base_url: str) -> Tuple[MetaTag, ...]:
        tags = []
        for tag in document.select_all("meta"):
            name = Document.attr(tag, "name") or Document.attr(tag, "property")
            content = Document.attr(tag, "content")
            if not name or content is None:
                continue
            tags.append(MetaTag(name=name.strip(), content=content.strip()))
        return tuple(tags)


class FaviconExtractor:
    """``<link rel~="icon">``: icon, shortcut icon, apple-touch-icon, mask-icon и т.п."""

    field = "favicons"

    def extract(self, document: Document, base_url: str) -> Tuple[Favicon, ...]:
        icons = []
        for tag in document.select_all("link"):
            rel = (Document.attr(tag, "rel") or "").lower()
            if not any("icon" in token for token in rel.split()):
                continue
            href = resolve_url(base_url, Document.attr(tag, "href"))
            if href is None:
                continue
            icons.append(
                Favicon(
                    href=href,
                    rel=" ".join(rel.split()),
                    sizes=Document.attr(tag, "sizes"),
                    type=Document.attr(tag, "type"),
                )
            )
        return tuple(icons)


_BY_FLAG: Tuple[Tuple[str, type], ...] = (
    ("extract_links", LinkExtractor),
    ("extract_images", ImageExtractor),
    ("extract_meta", MetaExtractor),
    ("extract_favicons", FaviconExtractor),
)


def build_extractors(flags: CrawlFlags) -> Tuple[Extractor, ...]:
    """Список включённых извлекателей; строится один раз на запрос."""
    return tuple(cls() for flag, cls in _BY_FLAG if getattr(flags, flag))
