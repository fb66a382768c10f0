# site_harvest/crawler/fetcher.py
"""
Fetcher module: the single network I/O point of the engine.

``DocumentFetcher.fetch`` never raises for network trouble: it returns either
a :class:`FetchResponse` or a :class:`FetchError` whose ``reason`` tells the
caller what went wrong, so retry policy stays with the caller.
"""
from __future__ import annotations

import asyncio
import socket
import ssl
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Union

from aiohttp import (
    ClientConnectorError,
    ClientError,
    ClientResponse,
    ClientSession,
    ClientSSLError,
    ClientTimeout,
    InvalidURL,
)

from site_harvest.logger import get_logger

__all__ = ["DocumentFetcher", "FetchResponse", "FetchError", "FetchErrorReason", "FetchOutcome"]

log = get_logger("fetcher")

_HTML_TYPES = ("text/html", "application/xhtml+xml", "application/xml", "text/xml", "text/plain")


class FetchErrorReason(str, Enum):
    TIMEOUT = "timeout"
    DNS = "dns"
    CONNECTION_REFUSED = "connection_refused"
    TLS = "tls"
    HTTP_STATUS = "http_status"
    UNSUPPORTED_CONTENT = "unsupported_content"
    INVALID_URL = "invalid_url"
    OTHER = "other"


# reasons worth another attempt when the caller allows retries
RETRYABLE = frozenset(
    {
        FetchErrorReason.TIMEOUT,
        FetchErrorReason.CONNECTION_REFUSED,
        FetchErrorReason.OTHER,
    }
)


@dataclass(frozen=True, slots=True)
class FetchResponse:
    url: str
    status_code: int
    headers: Dict[str, str]
    body: str
    content_type: str = ""


@dataclass(frozen=True, slots=True)
class FetchError:
    url: str
    reason: FetchErrorReason
    message: str
    status_code: int = 0
    headers: Dict[str, str] = field(default_factory=dict)
    content_type: str = ""

    @property
    def retryable(self) -> bool:
        if self.reason is FetchErrorReason.HTTP_STATUS:
            return self.status_code >= 500 or self.status_code == 429
        return self.reason in RETRYABLE

    def describe(self) -> str:
        return f"{self.reason.value}: {self.message}"


FetchOutcome = Union[FetchResponse, FetchError]


def _headers(resp: ClientResponse) -> Dict[str, str]:
    merged: Dict[str, str] = {}
    for key, value in resp.headers.items():
        name = key.lower()
        merged[name] = f"{merged[name]}, {value}" if name in merged else value
    return merged


def _classify(exc: BaseException) -> FetchErrorReason:
    if isinstance(exc, asyncio.TimeoutError):
        return FetchErrorReason.TIMEOUT
    if isinstance(exc, InvalidURL):
        return FetchErrorReason.INVALID_URL
    if isinstance(exc, (ClientSSLError, ssl.SSLError)):
        return FetchErrorReason.TLS
    if isinstance(exc, ClientConnectorError):
        os_error = exc.os_error
        if isinstance(os_error, socket.gaierror):
            return FetchErrorReason.DNS
        if isinstance(os_error, ConnectionRefusedError):
            return FetchErrorReason.CONNECTION_REFUSED
        if isinstance(os_error, ssl.SSLError):
            return FetchErrorReason.TLS
    return FetchErrorReason.OTHER


class DocumentFetcher:
    """Fetches one URL with a per-request timeout; no retries of its own."""

    def __init__(
        self,
        session: ClientSession,
        timeout: float = 10.0,
    ) -> None:
        self.session = session
        self.timeout = ClientTimeout(total=timeout)

    async def fetch(self, url: str) -> FetchOutcome:
        try:
            async with self.session.get(url, timeout=self.timeout, allow_redirects=True) as resp:
                headers = _headers(resp)
                status = resp.status
                final_url = str(resp.url)
                mime = headers.get("content-type", "").split(";", 1)[0].strip().lower()
                if not 200 <= status < 300:
                    return FetchError(
                        url=final_url,
                        reason=FetchErrorReason.HTTP_STATUS,
                        message=f"HTTP {status}",
                        status_code=status,
                        headers=headers,
                        content_type=mime,
                    )
                if mime and mime not in _HTML_TYPES:
                    return FetchError(
                        url=final_url,
                        reason=FetchErrorReason.UNSUPPORTED_CONTENT,
                        message=f"unsupported content type {mime}",
                        status_code=status,
                        headers=headers,
                        content_type=mime,
                    )
                body = await resp.text(errors="replace")
                return FetchResponse(final_url, status, headers, body, mime)
        except (ClientError, asyncio.TimeoutError, ssl.SSLError, UnicodeError, ValueError) as exc:
            reason = _classify(exc)
            message = str(exc) or exc.__class__.__name__
            log.warning("Fetch %s failed (%s): %s", url, reason.value, message)
            return FetchError(url, reason, message)
