# site_harvest/report/json_report.py

"""
Генерация JSON-отчёта для проекта SiteHarvest.

Сериализация SessionResult в файл.
"""
import json
from pathlib import Path

from site_harvest.models import SessionResult


def render_json(
    result: SessionResult,
    output_path: Path | str,
    *,
    include_raw_html: bool = True,
    pretty: bool = True,
) -> Path:
    """
    Сохраняет результат сессии в формате JSON по указанному пути.

    :param result: SessionResult завершённой сессии
    :param output_path: путь к JSON-файлу
    :param include_raw_html: включать ли исходный HTML страниц
    :param pretty: отступ 2 вместо компактной записи
    :return: Path сохранённого файла

    Пример:
    ```python
    from site_harvest.report.json_report import render_json
    report_path = render_json(result, 'reports/report.json')
    print(f"JSON report saved to: {report_path}")
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    data = result.as_dict(include_raw_html=include_raw_html)

    with output.open('w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2 if pretty else None)

    return output
