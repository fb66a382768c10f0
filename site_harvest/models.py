# site_harvest/models.py
"""
Data models for the SiteHarvest engine.

Everything a session produces is immutable once built: requests are
validated once, page results are created once per fetched page, and the
session result is frozen when the crawl ends.

Raw request bodies go through the pydantic payload models below; their
``ValidationError`` is translated into the coded ``CoreError`` subclasses so
the boundary layer only ever sees stable error codes.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, Mapping, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)

from site_harvest.errors import (
    CoreError,
    InvalidFlagsError,
    InvalidMaxPagesError,
    InvalidModeError,
    InvalidUrlError,
    MissingUrlError,
)
from site_harvest.utils import is_absolute_http_url, normalize_url

if TYPE_CHECKING:
    from site_harvest.config import EngineConfig

__all__ = (
    "CrawlMode",
    "CrawlFlags",
    "CrawlRequest",
    "FlagsPayload",
    "RequestPayload",
    "ImageItem",
    "MetaTag",
    "Favicon",
    "CMSInfo",
    "PageResult",
    "SessionSummary",
    "Performance",
    "SessionResult",
)


class CrawlMode(str, Enum):
    SINGLE = "single"
    MULTIPAGE = "multipage"


# request key (camelCase as sent by clients) -> CrawlFlags attribute
_FLAG_KEYS: Dict[str, str] = {
    "extractImages": "extract_images",
    "extractLinks": "extract_links",
    "extractMeta": "extract_meta",
    "extractFavicons": "extract_favicons",
    "detectTechnologies": "detect_technologies",
    "detectCMS": "detect_cms",
}


class FlagsPayload(BaseModel):
    """Флаги из тела запроса: только настоящие bool, ``None`` значит «по умолчанию»."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    extract_images: Optional[StrictBool] = Field(None, alias="extractImages")
    extract_links: Optional[StrictBool] = Field(None, alias="extractLinks")
    extract_meta: Optional[StrictBool] = Field(None, alias="extractMeta")
    extract_favicons: Optional[StrictBool] = Field(None, alias="extractFavicons")
    detect_technologies: Optional[StrictBool] = Field(None, alias="detectTechnologies")
    detect_cms: Optional[StrictBool] = Field(None, alias="detectCMS")


class RequestPayload(BaseModel):
    """Поля запроса на обход до применения лимитов движка."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    url: Optional[StrictStr] = Field(None, validate_default=True, description="Абсолютный http(s) URL.")
    mode: Optional[CrawlMode] = Field(None, description="single | multipage, без учёта регистра.")
    max_pages: Optional[StrictInt] = Field(None, ge=1, alias="maxPages", description="Лимит страниц.")

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: Optional[str]) -> str:
        if value is None or not value.strip():
            raise ValueError("URL is required")
        value = value.strip()
        if not is_absolute_http_url(value):
            raise ValueError("not an absolute http(s) URL")
        return value

    @field_validator("mode", mode="before")
    @classmethod
    def _fold_mode(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("max_pages", mode="before")
    @classmethod
    def _digit_string(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        return value


def _request_error(exc: ValidationError) -> CoreError:
    """Первая ошибка по порядку url → mode → maxPages в виде CoreError."""
    by_field: Dict[str, Dict[str, Any]] = {}
    for error in exc.errors():
        name = str(error["loc"][0]) if error["loc"] else ""
        by_field.setdefault("max_pages" if name == "maxPages" else name, error)

    if "url" in by_field:
        raw = by_field["url"].get("input")
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return MissingUrlError()
        return InvalidUrlError(f"Invalid URL: {raw!r}")
    if "mode" in by_field:
        return InvalidModeError(f"Invalid mode: {by_field['mode'].get('input')!r}")
    if "max_pages" in by_field:
        raw = by_field["max_pages"].get("input")
        return InvalidMaxPagesError(f"maxPages must be a positive integer, got {raw!r}")
    return CoreError(exc.errors()[0]["msg"])


@dataclass(frozen=True, slots=True)
class CrawlFlags:
    """Per-request switches; every extractor and detector is on by default."""

    extract_images: bool = True
    extract_links: bool = True
    extract_meta: bool = True
    extract_favicons: bool = True
    detect_technologies: bool = True
    detect_cms: bool = True

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> CrawlFlags:
        """Flags from a nested ``flags`` mapping, or from top-level keys when it is absent.

        Raises ``InvalidFlagsError`` for anything that is not a real boolean.
        """
        source = payload.get("flags")
        if source is None:
            source = payload
        elif not isinstance(source, Mapping):
            raise InvalidFlagsError(f"flags must be an object, got {type(source).__name__}")
        try:
            parsed = FlagsPayload.model_validate(dict(source))
        except ValidationError as exc:
            error = exc.errors()[0]
            raise InvalidFlagsError(f"{error['loc'][0]} must be a boolean, got {error['input']!r}") from None
        return cls(**parsed.model_dump(exclude_none=True))

    def as_dict(self) -> Dict[str, bool]:
        return {camel: getattr(self, snake) for camel, snake in _FLAG_KEYS.items()}


@dataclass(frozen=True, slots=True)
class CrawlRequest:
    """A validated crawl request. Build it with :meth:`from_payload` or :meth:`create`."""

    url: str
    mode: CrawlMode = CrawlMode.SINGLE
    max_pages: int = 1
    flags: CrawlFlags = field(default_factory=CrawlFlags)

    @classmethod
    def create(
        cls,
        url: Any,
        mode: Any = None,
        max_pages: Any = None,
        flags: Optional[CrawlFlags] = None,
        *,
        config: Optional["EngineConfig"] = None,
    ) -> CrawlRequest:
        """Validate raw values and build a request.

        Raises one of the ``CoreError`` validation subclasses on bad input.
        ``max_pages`` above the configured ceiling is clamped, or rejected when
        clamping is disabled.
        """
        try:
            fields = RequestPayload(url=url, mode=mode, max_pages=max_pages)
        except ValidationError as exc:
            raise _request_error(exc) from None
        return cls._from_fields(fields, flags or CrawlFlags(), config)

    @classmethod
    def from_payload(
        cls, payload: Mapping[str, Any], config: Optional["EngineConfig"] = None
    ) -> CrawlRequest:
        """Build a request from a decoded JSON body (camelCase or snake_case keys)."""
        try:
            fields = RequestPayload.model_validate(dict(payload))
        except ValidationError as exc:
            raise _request_error(exc) from None
        return cls._from_fields(fields, CrawlFlags.from_payload(payload), config)

    @classmethod
    def _from_fields(
        cls, fields: RequestPayload, flags: CrawlFlags, config: Optional["EngineConfig"]
    ) -> CrawlRequest:
        crawl_mode = fields.mode or CrawlMode.SINGLE
        ceiling = config.max_pages_ceiling if config else 100
        pages = fields.max_pages
        if pages is None:
            pages = config.default_max_pages if config else 10
        if pages > ceiling:
            if config is not None and not config.clamp_max_pages:
                raise InvalidMaxPagesError(f"maxPages must not exceed {ceiling}")
            pages = ceiling
        if crawl_mode is CrawlMode.SINGLE:
            pages = 1
        return cls(url=normalize_url(fields.url), mode=crawl_mode, max_pages=pages, flags=flags)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "mode": self.mode.value,
            "maxPages": self.max_pages,
            "flags": self.flags.as_dict(),
        }


@dataclass(frozen=True, slots=True)
class ImageItem:
    src: str
    alt: Optional[str] = None


@dataclass(frozen=True, slots=True)
class MetaTag:
    name: str
    content: str


@dataclass(frozen=True, slots=True)
class Favicon:
    href: str
    rel: str
    sizes: Optional[str] = None
    type: Optional[str] = None


@dataclass(frozen=True, slots=True)
class CMSInfo:
    """CMS verdict; ``type == "unknown"`` when nothing matched."""

    type: str = "unknown"
    version: Optional[str] = None
    plugins: Tuple[str, ...] = ()

    @property
    def detected(self) -> bool:
        return self.type != "unknown"

    def as_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "version": self.version, "plugins": list(self.plugins)}


@dataclass(frozen=True, slots=True)
class PageResult:
    """Everything extracted from one fetched (or failed) page."""

    url: str
    status_code: int
    fetched_at: datetime
    title: str = ""
    raw_html: str = ""
    extracted_text: str = ""
    links: Tuple[str, ...] = ()
    images: Tuple[ImageItem, ...] = ()
    meta_tags: Tuple[MetaTag, ...] = ()
    favicons: Tuple[Favicon, ...] = ()
    technologies: FrozenSet[str] = frozenset()
    cms: CMSInfo = field(default_factory=CMSInfo)
    final_url: Optional[str] = None
    content_type: Optional[str] = None
    depth: int = 0
    discovered_from: Optional[int] = None
    error: Optional[str] = None
    # links harvested for the frontier; kept even when extractLinks is off
    discovered_links: Tuple[str, ...] = field(default=(), repr=False, compare=False)

    @property
    def ok(self) -> bool:
        return self.error is None and 200 <= self.status_code < 300

    def as_dict(self, *, include_raw_html: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "url": self.url,
            "finalUrl": self.final_url,
            "statusCode": self.status_code,
            "contentType": self.content_type,
            "title": self.title,
            "extractedText": self.extracted_text,
            "links": list(self.links),
            "images": [{"src": i.src, "alt": i.alt} for i in self.images],
            "metaTags": [{"name": m.name, "content": m.content} for m in self.meta_tags],
            "favicons": [
                {"href": f.href, "sizes": f.sizes, "type": f.type, "rel": f.rel}
                for f in self.favicons
            ],
            "technologies": sorted(self.technologies),
            "cms": self.cms.as_dict(),
            "depth": self.depth,
            "discoveredFrom": self.discovered_from,
            "fetchedAt": self.fetched_at.isoformat(),
            "error": self.error,
        }
        if include_raw_html:
            data["rawHtml"] = self.raw_html
        return data


@dataclass(frozen=True, slots=True)
class SessionSummary:
    total_pages: int = 0
    successful_pages: int = 0
    failed_pages: int = 0
    total_links: int = 0
    unique_links: int = 0
    total_images: int = 0
    total_meta_tags: int = 0
    total_favicons: int = 0
    technologies: Tuple[str, ...] = ()
    favicons: Tuple[Favicon, ...] = ()
    cms: CMSInfo = field(default_factory=CMSInfo)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "totalPages": self.total_pages,
            "successfulPages": self.successful_pages,
            "failedPages": self.failed_pages,
            "totalLinks": self.total_links,
            "uniqueLinks": self.unique_links,
            "totalImages": self.total_images,
            "totalMetaTags": self.total_meta_tags,
            "totalFavicons": self.total_favicons,
            "technologies": list(self.technologies),
            "favicons": [
                {"href": f.href, "sizes": f.sizes, "type": f.type, "rel": f.rel}
                for f in self.favicons
            ],
            "cms": self.cms.as_dict(),
        }


@dataclass(frozen=True, slots=True)
class Performance:
    start_time: datetime
    end_time: datetime
    total_duration_ms: float
    pages_per_second: float

    def as_dict(self) -> Dict[str, Any]:
        return {
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat(),
            "totalDurationMs": round(self.total_duration_ms, 3),
            "pagesPerSecond": round(self.pages_per_second, 3),
        }


@dataclass(frozen=True, slots=True)
class SessionResult:
    """Final, immutable outcome of one crawl session."""

    request: CrawlRequest
    pages: Tuple[PageResult, ...]
    summary: SessionSummary
    performance: Performance
    termination: str = "exhausted"
    partial: bool = False
    error: Optional[str] = None

    def as_dict(self, *, include_raw_html: bool = True) -> Dict[str, Any]:
        return {
            "request": self.request.as_dict(),
            "pages": [p.as_dict(include_raw_html=include_raw_html) for p in self.pages],
            "summary": self.summary.as_dict(),
            "performance": self.performance.as_dict(),
            "termination": self.termination,
            "partial": self.partial,
            "error": self.error,
        }

