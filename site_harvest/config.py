# === FILE: site_harvest/config.py ===
"""
Загрузка и валидация конфигурации движка SiteHarvest.
Схема описана через Pydantic; файл может быть YAML или JSON.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

FollowScope = Literal["registrable_domain", "origin", "host"]
ParserBackend = Literal["html.parser", "lxml"]


class EngineConfig(BaseModel):
    """Настройки движка: таймауты, лимиты, политика обхода и контроль нагрузки."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    user_agent: str = Field("SiteHarvestBot/1.0", min_length=1, description="Заголовок User-Agent.")
    fetch_timeout: float = Field(10.0, gt=0, description="Таймаут на один запрос (секунд).")
    fetch_retries: int = Field(0, ge=0, description="Повторы при временных ошибках загрузки.")
    retry_backoff: float = Field(1.0, ge=0, description="База экспоненциальной паузы между повторами.")
    politeness_delay: float = Field(0.0, ge=0, description="Минимальный интервал между запросами сессии.")
    follow_scope: FollowScope = Field("registrable_domain", description="Область следования по ссылкам.")

    default_max_pages: int = Field(10, ge=1, description="maxPages, если он не указан в запросе.")
    max_pages_ceiling: int = Field(100, ge=1, description="Жесткий потолок maxPages.")
    clamp_max_pages: bool = Field(True, description="Обрезать maxPages до потолка вместо отказа.")
    page_workers: int = Field(1, ge=1, description="Параллельных загрузок внутри одной сессии.")
    session_deadline: Optional[float] = Field(None, gt=0, description="Лимит времени сессии (секунд).")

    max_concurrent_sessions: int = Field(5, ge=1, description="Одновременно выполняемых сессий.")
    max_queued_sessions: int = Field(10, ge=0, description="Глубина очереди ожидающих сессий.")
    queue_timeout: Optional[float] = Field(None, gt=0, description="Максимальное ожидание в очереди.")

    parser_backend: ParserBackend = Field("html.parser", description="Построитель дерева BeautifulSoup.")
    catalog_path: Optional[Path] = Field(None, description="Каталог с собственными сигнатурами.")
    min_elapsed_seconds: float = Field(0.001, gt=0, description="Нижняя граница времени для pages/s.")

    @model_validator(mode="after")
    def _check_limits(self) -> EngineConfig:
        if self.default_max_pages > self.max_pages_ceiling:
            raise ValueError("default_max_pages must not exceed max_pages_ceiling")
        if self.catalog_path is not None and not self.catalog_path.is_dir():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(self.catalog_path))
        return self


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> EngineConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект EngineConfig.
    Без пути использует configs/default.yaml, а при его отсутствии - значения по умолчанию.
    """
    if path is None:
        if not _DEFAULT_CFG.is_file():
            return EngineConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    return EngineConfig(**data)


__all__ = ["EngineConfig", "FollowScope", "ParserBackend", "ValidationError", "load_config"]
