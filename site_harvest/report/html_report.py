"""site_harvest.report.html_report: Генерация HTML-отчёта с помощью Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import Environment, FileSystemLoader, PackageLoader, select_autoescape

from site_harvest.models import SessionResult

TEMPLATE_NAME = "report.html.j2"


def render_html(
    result: SessionResult,
    template_dir: Optional[Union[Path, str]],
    output_path: Union[Path, str],
) -> Path:
    """Рендерит HTML-отчёт из шаблона и сохраняет его по указанному пути.

    Args:
        result: SessionResult завершённой сессии.
        template_dir: директория с шаблоном ``report.html.j2``; ``None`` -
            встроенный шаблон пакета.
        output_path: путь к итоговому HTML-файлу.

    Returns:
        Path до сохранённого HTML-файла.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    loader = (
        FileSystemLoader(str(template_dir))
        if template_dir is not None
        else PackageLoader("site_harvest", "templates")
    )
    env = Environment(loader=loader, autoescape=select_autoescape(["html", "xml", "j2"]))
    template = env.get_template(TEMPLATE_NAME)

    data = result.as_dict(include_raw_html=False)
    context: dict[str, Any] = {
        "request": data["request"],
        "pages": data["pages"],
        "summary": data["summary"],
        "performance": data["performance"],
        "termination": data["termination"],
        "partial": data["partial"],
        "error": data["error"],
    }

    html_content = template.render(**context)
    output_path.write_text(html_content, encoding="utf-8")

    return output_path
