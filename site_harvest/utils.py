# File: site_harvest/utils.py
"""site_harvest.utils: Утилиты для URL - нормализация, проверка, разрешение ссылок и область обхода."""

from __future__ import annotations

import posixpath
import re
from typing import Collection, List, Optional, Sequence
from urllib.parse import parse_qsl, quote, urlencode, urljoin, urlparse, urlunparse

import tldextract

from site_harvest.logger import logger

__all__: Sequence[str] = (
    "normalize_url",
    "is_absolute_http_url",
    "resolve_url",
    "registrable_domain",
    "in_scope",
    "remove_duplicates",
)

_HTTP_SCHEMES = ("http", "https")
_DEFAULT_PORTS = {"http": 80, "https": 443}
_PATH_SAFE = "/:@!$&'()*+,;=~%"
_PCT_ESCAPE = re.compile(r"%([0-9A-Fa-f]{2})")
_UNRESERVED = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-._~")

# bundled public-suffix snapshot only: no network access at runtime
_TLD_EXTRACT = tldextract.TLDExtract(suffix_list_urls=(), cache_dir=None)


def _decode_unreserved(match: re.Match) -> str:
    char = chr(int(match.group(1), 16))
    return char if char in _UNRESERVED else "%" + match.group(1).upper()


def normalize_url(url: str) -> str:
    """Приводит URL к канонической форме.

    Схема и хост в нижнем регистре, порт по умолчанию убран, путь схлопнут
    (``/a/./b/../c`` → ``/a/c``), параметры запроса отсортированы, фрагмент отброшен.
    В пути раскодируются только незарезервированные символы (``%7E`` → ``~``);
    прочие escape-последовательности остаются, так что ``/a%2Fb`` не равен ``/a/b``.
    """
    parsed = urlparse(url.strip())
    scheme = parsed.scheme.lower()
    host = (parsed.hostname or "").lower()
    port = parsed.port
    netloc = f"[{host}]" if ":" in host else host
    if parsed.username:
        userinfo = parsed.username + (f":{parsed.password}" if parsed.password else "")
        netloc = f"{userinfo}@{netloc}"
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        netloc += f":{port}"

    path = _PCT_ESCAPE.sub(_decode_unreserved, parsed.path or "/")
    norm = posixpath.normpath(path)
    if path.endswith("/") and not norm.endswith("/"):
        norm += "/"
    if not norm.startswith("/"):
        norm = "/" + norm
    if norm.startswith("//"):
        norm = "/" + norm.lstrip("/")
    norm = quote(norm, safe=_PATH_SAFE)

    qs = parse_qsl(parsed.query, keep_blank_values=True)
    qs.sort()
    query = urlencode(qs, doseq=True)
    return urlunparse((scheme, netloc, norm, "", query, ""))


def is_absolute_http_url(url: str) -> bool:
    """Проверяет, что строка - абсолютный http(s) URL с хостом и корректным портом."""
    try:
        parsed = urlparse(url)
        parsed.port  # noqa: B018 - raises ValueError on a malformed port
    except ValueError:
        return False
    return parsed.scheme.lower() in _HTTP_SCHEMES and bool(parsed.hostname)


def resolve_url(base_url: str, href: Optional[str]) -> Optional[str]:
    """Разрешает *href* относительно *base_url* и нормализует результат.

    Возвращает ``None`` для пустых, не-http(s) (``mailto:``, ``javascript:``,
    ``data:``…) и синтаксически битых ссылок.
    """
    if href is None:
        return None
    try:
        absolute = urljoin(base_url, href.strip())
        if not is_absolute_http_url(absolute):
            return None
        return normalize_url(absolute)
    except ValueError:
        logger.debug("Dropped malformed href %r on %s", href, base_url)
        return None


def registrable_domain(host: str) -> str:
    """Возвращает регистрируемый домен (``blog.example.co.uk`` → ``example.co.uk``).

    Для IP-адресов и одиночных имён (``localhost``) возвращается сам хост.
    """
    host = host.lower()
    ext = _TLD_EXTRACT(host)
    if ext.domain and ext.suffix:
        return f"{ext.domain}.{ext.suffix}"
    return ext.domain or host


def in_scope(url: str, seed_url: str, scope: str = "registrable_domain") -> bool:
    """Решает, можно ли следовать по *url* в обходе, начатом с *seed_url*."""
    target, seed = urlparse(url), urlparse(seed_url)
    if scope == "origin":
        return (target.scheme, target.netloc) == (seed.scheme, seed.netloc)
    if scope == "host":
        return target.hostname == seed.hostname
    if scope == "registrable_domain":
        return registrable_domain(target.hostname or "") == registrable_domain(seed.hostname or "")
    raise ValueError(f"Unknown follow scope: {scope}")


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Удаляет дубликаты из списка URL, сохраняя порядок."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
