# File: site_harvest/errors.py
"""site_harvest.errors: Ошибки ядра с устойчивыми машинными кодами.

Граничный слой (HTTP, CLI) отображает ``code`` в свой ответ; ядро само
HTTP-статусов не знает.
"""

from __future__ import annotations

from typing import ClassVar, Dict

__all__ = [
    "CoreError",
    "MissingUrlError",
    "InvalidUrlError",
    "InvalidModeError",
    "InvalidMaxPagesError",
    "InvalidFlagsError",
    "CapacityExceededError",
    "SessionError",
]


class CoreError(Exception):
    """Базовая ошибка ядра."""

    code: ClassVar[str] = "CORE_ERROR"
    default_message: ClassVar[str] = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_dict(self) -> Dict[str, str]:
        return {"code": self.code, "message": self.message}

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class MissingUrlError(CoreError):
    code = "MISSING_URL"
    default_message = "URL is required"


class InvalidUrlError(CoreError):
    code = "INVALID_URL"
    default_message = "URL must be an absolute http(s) URL"


class InvalidModeError(CoreError):
    code = "INVALID_MODE"
    default_message = "Mode must be 'single' or 'multipage'"


class InvalidMaxPagesError(CoreError):
    code = "INVALID_MAX_PAGES"
    default_message = "maxPages must be a positive integer"


class InvalidFlagsError(CoreError):
    code = "INVALID_FLAGS"
    default_message = "Flags must be booleans"


class CapacityExceededError(CoreError):
    """Отказ регулятора нагрузки: все слоты и очередь заняты."""

    code = "CAPACITY_EXCEEDED"
    default_message = "Too many concurrent crawl sessions, try again later"


class SessionError(CoreError):
    """Непредвиденный сбой внутри сессии, когда частичный результат невозможен."""

    code = "SESSION_ERROR"
    default_message = "Crawl session failed"
