"""site_harvest.report: Генерация отчётов (JSON и HTML) для CLI и тестов."""

from __future__ import annotations

from .html_report import render_html
from .json_report import render_json

__all__ = ["render_json", "render_html"]
