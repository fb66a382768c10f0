# File: site_harvest/engine.py
"""site_harvest.engine: Фасад ядра для граничного слоя (HTTP, CLI, тесты).

Точка входа одна - :meth:`Engine.handle_scrape_request`: проверка запроса,
допуск через регулятор нагрузки, запуск оркестратора и гарантированное
освобождение слота на любом пути выхода.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from site_harvest.config import EngineConfig, load_config
from site_harvest.crawler.orchestrator import CrawlOrchestrator
from site_harvest.detect.catalog import SignatureCatalog, default_catalog, load_catalog
from site_harvest.errors import CoreError, SessionError
from site_harvest.governor import ConcurrencyGovernor, LoadStatus
from site_harvest.logger import logger
from site_harvest.models import CrawlRequest, SessionResult

__all__ = ["Engine"]


class Engine:
    """Проверяет запросы, допускает сессии и возвращает SessionResult."""

    @staticmethod
    def load_config(path: Optional[str]) -> EngineConfig:
        """Загружает конфиг из YAML/JSON или использует значения по умолчанию."""
        return load_config(path)

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        catalog: Optional[SignatureCatalog] = None,
    ) -> None:
        self.config = config or EngineConfig()
        if catalog is None:
            catalog = load_catalog(self.config.catalog_path) if self.config.catalog_path else default_catalog()
        self.catalog = catalog
        self.governor = ConcurrencyGovernor(
            self.config.max_concurrent_sessions,
            self.config.max_queued_sessions,
            self.config.queue_timeout,
        )

    def validate(self, request: Union[CrawlRequest, Mapping[str, Any]]) -> CrawlRequest:
        """Приводит тело запроса к CrawlRequest; ошибки проверки всплывают сразу."""
        if isinstance(request, CrawlRequest):
            return request
        return CrawlRequest.from_payload(request, self.config)

    async def handle_scrape_request(self, request: Union[CrawlRequest, Mapping[str, Any]]) -> SessionResult:
        """Единственная точка входа: SessionResult или CoreError."""
        crawl_request = self.validate(request)
        permit = await self.governor.admit()
        logger.info("Session admitted: %s (%d/%d active)", crawl_request.url,
                    self.governor.active, self.governor.ceiling)
        async with permit:
            try:
                async with CrawlOrchestrator(crawl_request, self.config, catalog=self.catalog) as orchestrator:
                    return await orchestrator.run()
            except CoreError:
                raise
            except Exception as exc:
                logger.error("Session for %s failed: %s", crawl_request.url, exc)
                raise SessionError(f"Crawl of {crawl_request.url} failed: {exc}") from exc

    def get_load_status(self) -> LoadStatus:
        """Снимок нагрузки для слоя health/status."""
        return self.governor.status()
