# site_harvest/__init__.py
"""
SiteHarvest package initializer.
Defines package version, exposes the engine facade and the CLI.
"""
__version__ = "0.1.0"

from site_harvest.config import EngineConfig, load_config
from site_harvest.engine import Engine
from site_harvest.errors import CoreError
from site_harvest.models import CrawlFlags, CrawlMode, CrawlRequest, PageResult, SessionResult

# Expose CLI entry point
from .cli import cli  # экспорт для pytest

__all__ = [
    "__version__",
    "cli",
    "CoreError",
    "CrawlFlags",
    "CrawlMode",
    "CrawlRequest",
    "Engine",
    "EngineConfig",
    "PageResult",
    "SessionResult",
    "load_config",
]
