# File: site_harvest/detect/catalog.py
"""site_harvest.detect.catalog: Каталог сигнатур технологий и CMS.

Каталог читается из YAML один раз при старте, проверяется Pydantic-схемой,
регулярные выражения компилируются, а результат складывается в неизменяемые
структуры (frozen dataclasses и кортежи), которые все сессии используют
совместно без блокировок.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import List, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from site_harvest.logger import get_logger

__all__ = [
    "Location",
    "MatchRule",
    "TechnologySignature",
    "CMSSignature",
    "SignatureCatalog",
    "load_catalog",
    "default_catalog",
]

log = get_logger("catalog")

TECHNOLOGIES_FILE = "technologies.yaml"
CMS_FILE = "cms.yaml"


class Location(str, Enum):
    HTML = "html"
    HEADER = "header"
    META = "meta"
    SCRIPT_SRC = "script-src"


# --------------------------------------------------------------------------- #
# File schema                                                                 #
# --------------------------------------------------------------------------- #


class _RuleSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    location: Location
    pattern: str
    name: Optional[str] = None

    @field_validator("pattern")
    @classmethod
    def _compiles(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as exc:
            raise ValueError(f"invalid pattern {v!r}: {exc}") from exc
        return v

    @model_validator(mode="after")
    def _named_locations(self) -> _RuleSpec:
        if self.location in (Location.HEADER, Location.META) and not self.name:
            raise ValueError(f"{self.location.value} rules need a 'name'")
        return self


class _TechnologySpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    category: str = "Other"
    rules: List[_RuleSpec] = Field(..., min_length=1)


class _CMSSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    rules: List[_RuleSpec] = Field(..., min_length=1)
    version: List[_RuleSpec] = Field(default_factory=list)
    plugins: List[_RuleSpec] = Field(default_factory=list)


class _TechnologyFile(BaseModel):
    technologies: List[_TechnologySpec] = Field(default_factory=list)


class _CMSFile(BaseModel):
    cms: List[_CMSSpec] = Field(default_factory=list)


# --------------------------------------------------------------------------- #
# Runtime structures                                                          #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class MatchRule:
    location: Location
    pattern: re.Pattern[str]
    name: Optional[str] = None

    @classmethod
    def from_spec(cls, spec: _RuleSpec) -> MatchRule:
        name = spec.name.lower() if spec.name else None
        return cls(spec.location, re.compile(spec.pattern, re.IGNORECASE), name)


@dataclass(frozen=True, slots=True)
class TechnologySignature:
    name: str
    category: str
    rules: Tuple[MatchRule, ...]


@dataclass(frozen=True, slots=True)
class CMSSignature:
    name: str
    rules: Tuple[MatchRule, ...]
    version_rules: Tuple[MatchRule, ...] = ()
    plugin_rules: Tuple[MatchRule, ...] = ()


@dataclass(frozen=True, slots=True)
class SignatureCatalog:
    technologies: Tuple[TechnologySignature, ...]
    cms: Tuple[CMSSignature, ...]


def _rules(specs: List[_RuleSpec]) -> Tuple[MatchRule, ...]:
    return tuple(MatchRule.from_spec(s) for s in specs)


def _read_yaml(text: str, source: str) -> dict:
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {source}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping в {source}")
    return data


def _read_text(directory: Optional[Path], filename: str) -> Tuple[str, str]:
    if directory is None:
        ref = resources.files("site_harvest.data").joinpath(filename)
        return ref.read_text(encoding="utf-8"), f"site_harvest/data/{filename}"
    path = directory / filename
    return path.read_text(encoding="utf-8"), str(path)


def load_catalog(directory: Union[str, Path, None] = None) -> SignatureCatalog:
    """Читает ``technologies.yaml`` и ``cms.yaml`` из *directory* (или встроенные)."""
    dir_path = Path(directory) if directory is not None else None

    text, source = _read_text(dir_path, TECHNOLOGIES_FILE)
    tech_file = _TechnologyFile(**_read_yaml(text, source))
    text, source = _read_text(dir_path, CMS_FILE)
    cms_file = _CMSFile(**_read_yaml(text, source))

    catalog = SignatureCatalog(
        technologies=tuple(
            TechnologySignature(t.name, t.category, _rules(t.rules)) for t in tech_file.technologies
        ),
        cms=tuple(
            CMSSignature(c.name, _rules(c.rules), _rules(c.version), _rules(c.plugins))
            for c in cms_file.cms
        ),
    )
    log.debug(
        "Loaded %d technology and %d CMS signatures from %s",
        len(catalog.technologies),
        len(catalog.cms),
        dir_path or "bundled catalog",
    )
    return catalog


@lru_cache(maxsize=None)
def default_catalog() -> SignatureCatalog:
    """Встроенный каталог, загружаемый один раз на процесс."""
    return load_catalog(None)
