# File: site_harvest/detect/detectors.py
"""Technology and CMS detection by signature scanning.

Each catalog entry is a set of rules, one per place to look (page markup,
a response header, a meta tag, a script ``src``). A signature is present
when any of its rules matches; there is no scoring.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

from site_harvest.detect.catalog import Location, MatchRule, SignatureCatalog, default_catalog
from site_harvest.logger import get_logger
from site_harvest.models import CMSInfo
from site_harvest.parser.html_parser import Document

__all__ = ["PageSignals", "TechnologyDetector", "CMSDetector"]

log = get_logger("detect")


@dataclass(frozen=True, slots=True)
class PageSignals:
    """The four places a rule can look at, pulled out of a page once."""

    html: str
    headers: Mapping[str, str]
    meta: Mapping[str, Tuple[str, ...]]
    script_srcs: Tuple[str, ...]

    @classmethod
    def collect(cls, document: Document, headers: Optional[Mapping[str, str]] = None) -> PageSignals:
        meta: Dict[str, List[str]] = {}
        for tag in document.select_all("meta"):
            name = Document.attr(tag, "name") or Document.attr(tag, "property") or Document.attr(tag, "http-equiv")
            content = Document.attr(tag, "content")
            if name and content is not None:
                meta.setdefault(name.strip().lower(), []).append(content)
        scripts = tuple(
            src for src in (Document.attr(tag, "src") for tag in document.select_all("script")) if src
        )
        return cls(
            html=document.html,
            headers={k.lower(): v for k, v in (headers or {}).items()},
            meta={k: tuple(v) for k, v in meta.items()},
            script_srcs=scripts,
        )

    def values(self, rule: MatchRule) -> Tuple[str, ...]:
        """Strings *rule* should be tested against."""
        if rule.location is Location.HTML:
            return (self.html,)
        if rule.location is Location.HEADER:
            value = self.headers.get(rule.name or "")
            return () if value is None else (value,)
        if rule.location is Location.META:
            return self.meta.get(rule.name or "", ())
        return self.script_srcs

    def search(self, rule: MatchRule):
        for value in self.values(rule):
            match = rule.pattern.search(value)
            if match:
                return match
        return None

    def matches(self, rules: Tuple[MatchRule, ...]) -> bool:
        return any(self.search(rule) is not None for rule in rules)


class TechnologyDetector:
    """``detect(document, headers) -> frozenset`` of technology names."""

    field = "technologies"

    def __init__(self, catalog: Optional[SignatureCatalog] = None) -> None:
        self.catalog = catalog or default_catalog()

    def detect(
        self,
        document: Document,
        headers: Optional[Mapping[str, str]] = None,
        signals: Optional[PageSignals] = None,
    ) -> FrozenSet[str]:
        signals = signals or PageSignals.collect(document, headers)
        found = frozenset(sig.name for sig in self.catalog.technologies if signals.matches(sig.rules))
        log.debug("Technologies detected: %s", sorted(found))
        return found


class CMSDetector:
    """``detect(document, headers) -> CMSInfo``; the first matching catalog entry wins."""

    field = "cms"

    def __init__(self, catalog: Optional[SignatureCatalog] = None) -> None:
        self.catalog = catalog or default_catalog()

    def detect(
        self,
        document: Document,
        headers: Optional[Mapping[str, str]] = None,
        signals: Optional[PageSignals] = None,
    ) -> CMSInfo:
        signals = signals or PageSignals.collect(document, headers)
        for sig in self.catalog.cms:
            if not signals.matches(sig.rules):
                continue
            version = None
            for rule in sig.version_rules:
                match = signals.search(rule)
                if match and match.groups() and match.group(1):
                    version = match.group(1)
                    break
            plugins: Dict[str, None] = {}
            for rule in sig.plugin_rules:
                for value in signals.values(rule):
                    for match in rule.pattern.finditer(value):
                        if match.groups() and match.group(1):
                            plugins.setdefault(match.group(1), None)
            log.debug("CMS detected: %s %s", sig.name, version or "")
            return CMSInfo(type=sig.name, version=version, plugins=tuple(plugins))
        return CMSInfo()
