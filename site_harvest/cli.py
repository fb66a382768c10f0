# === FILE: site_harvest/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска SiteHarvest через командную строку.

Команды:
  scrape URL  Обойти страницу (или сайт) и вывести/сохранить результат
  config      Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stderr, если не указан)
  --log-format FORMAT Формат логирования

Команда scrape опции:
  --mode MODE         single | multipage
  --max-pages INT     Лимит страниц для multipage
  --no-images, --no-links, --no-meta, --no-favicons, --no-tech, --no-cms
                      Отключить отдельные извлекатели и детекторы
  --json PATH         Сохранить JSON-отчёт в файл
  --html PATH         Сохранить HTML-отчёт в файл
  --template DIR      Папка с Jinja2-шаблоном report.html.j2
  --pretty            Преформатировать JSON-вывод (отступ 2)
  --no-raw-html       Не включать исходный HTML страниц в JSON
  --scan-timeout SEC  Таймаут всего запуска (секунд)

Дополнительно:
  --version, -v       Показать версию SiteHarvest

Пример:
  site-harvest scrape https://example.com --mode multipage --max-pages 20 --json report.json
"""
import asyncio
import json
import sys
from pathlib import Path

import click

from site_harvest import __version__
from site_harvest.config import load_config
from site_harvest.engine import Engine
from site_harvest.errors import CoreError
from site_harvest.logger import DEFAULT_FORMAT, init_logging
from site_harvest.models import CrawlFlags
from site_harvest.report.html_report import render_html
from site_harvest.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


async def start_scrape(cfg, payload):
    """Один запуск движка: SessionResult или CoreError."""
    return await Engine(cfg).handle_scrape_request(payload)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteHarvest, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='WARNING', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stderr, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд SiteHarvest CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('scrape', context_settings=CONTEXT_SETTINGS)
@click.argument('url', required=False, default='')
@click.option('--mode', '-m', default='single', show_default=True, help='single или multipage')
@click.option('--max-pages', '-n', 'max_pages', type=int, default=None, help='Лимит страниц (multipage)')
@click.option('--no-images', is_flag=True, help='Не извлекать изображения')
@click.option('--no-links', is_flag=True, help='Не выводить ссылки')
@click.option('--no-meta', is_flag=True, help='Не извлекать meta-теги')
@click.option('--no-favicons', is_flag=True, help='Не извлекать иконки')
@click.option('--no-tech', is_flag=True, help='Не определять технологии')
@click.option('--no-cms', is_flag=True, help='Не определять CMS')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-отчёт в файл'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Папка с Jinja2-шаблоном (по умолчанию встроенный)'
)
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.option('--no-raw-html', 'no_raw_html', is_flag=True, help='Не включать исходный HTML в JSON')
@click.option(
    '--scan-timeout', 'scan_timeout',
    type=float,
    default=None,
    help='Таймаут всего запуска (секунд)'
)
@click.pass_context
def scrape(ctx, url, mode, max_pages, no_images, no_links, no_meta, no_favicons, no_tech, no_cms,
           json_output, html_output, template_dir, pretty, no_raw_html, scan_timeout):
    """Обойти URL и сгенерировать отчёты."""
    cfg = ctx.obj['config']
    flags = CrawlFlags(
        extract_images=not no_images,
        extract_links=not no_links,
        extract_meta=not no_meta,
        extract_favicons=not no_favicons,
        detect_technologies=not no_tech,
        detect_cms=not no_cms,
    )
    payload = {'url': url, 'mode': mode, 'maxPages': max_pages, 'flags': flags.as_dict()}
    try:
        if scan_timeout:
            result = asyncio.run(
                asyncio.wait_for(start_scrape(cfg, payload), timeout=scan_timeout)
            )
        else:
            result = asyncio.run(start_scrape(cfg, payload))
    except asyncio.TimeoutError:
        print_error(f'Обход не завершён за {scan_timeout} секунд')
    except CoreError as e:
        print_error(str(e))
    except Exception as e:
        print_error(f'Ошибка при обходе: {e}')

    # Если не сохраняем в файл - печатаем в stdout
    if not json_output and not html_output:
        indent = 2 if pretty else None
        data = result.as_dict(include_raw_html=not no_raw_html)
        click.echo(json.dumps(data, ensure_ascii=False, indent=indent))
        return

    if json_output:
        try:
            saved_json = render_json(result, json_output, include_raw_html=not no_raw_html, pretty=pretty)
            click.echo(f'JSON report: {saved_json}')
        except Exception as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(result, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Ошибка при сохранении HTML: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
