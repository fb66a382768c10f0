# cli.py

"""
Точка входа для запуска SiteHarvest без установки пакета.

Пример запуска:
    python cli.py --config configs/default.yaml scrape https://example.com --mode multipage --json reports/report.json
"""
from site_harvest.cli import cli


if __name__ == '__main__':
    cli()
