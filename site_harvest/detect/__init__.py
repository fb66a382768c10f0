"""site_harvest.detect: Сигнатурное определение технологий и CMS."""

from .catalog import SignatureCatalog, default_catalog, load_catalog
from .detectors import CMSDetector, PageSignals, TechnologyDetector

__all__ = [
    "CMSDetector",
    "PageSignals",
    "SignatureCatalog",
    "TechnologyDetector",
    "default_catalog",
    "load_catalog",
]
