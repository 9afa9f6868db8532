# === FILE: sitemap_streams/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для генерации sitemap через командную строку.

Команды:
  build     Собрать sitemap-файлы и индекс из списка URL
  config    Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования (e.g. "%(asctime)s %(levelname)s %(message)s")

Команда build опции:
  --out DIR           Папка для sitemap-файлов и индекса
  --base-url URL      Публичный адрес папки (для <loc> в индексе)
  --hostname URL      База для относительных URL во входе
  --count-limit N     Макс. число URL в одном файле
  --byte-limit N      Макс. размер одного файла в байтах
  --gzip              Сжимать sitemap-файлы
  --report PATH       Сохранить JSON-отчёт о сборке

Дополнительно:
  --version, -v       Показать версию

Пример:
  sitemap-streams build urls.txt --out public --base-url https://example.com/ --count-limit 50000
"""
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from sitemap_streams import __version__
from sitemap_streams.config import SitemapConfig, load_config
from sitemap_streams.engine import Engine, summarize
from sitemap_streams.logger import init_logging
from sitemap_streams.report import render_json
from sitemap_streams.utils import read_items

CONTEXT_SETTINGS = dict(help_option_names=["--help"])

def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)

@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='sitemap_streams, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML или JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд sitemap-streams."""
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

@cli.command('build', context_settings=CONTEXT_SETTINGS)
@click.argument('source', type=click.File('r', encoding='utf-8'))
@click.option(
    '--out', '-o', 'out_dir',
    required=True,
    type=click.Path(file_okay=False, path_type=Path),
    help='Папка для sitemap-файлов и индекса'
)
@click.option('--base-url', 'base_url', default=None, help='Публичный адрес папки с sitemap')
@click.option('--hostname', 'hostname', default=None, help='База для относительных URL')
@click.option('--count-limit', 'count_limit', type=int, default=None, help='Макс. число URL в файле')
@click.option('--byte-limit', 'byte_limit', type=int, default=None, help='Макс. размер файла в байтах')
@click.option('--gzip', 'gzip', is_flag=True, default=False, help='Сжимать sitemap-файлы gzip')
@click.option(
    '--report', '-r', 'report_path',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.pass_context
def build(ctx, source, out_dir, base_url, hostname, count_limit, byte_limit, gzip, report_path):
    """Собрать sitemap-файлы и индекс из SOURCE (файл или '-' для stdin)."""
    cfg = ctx.obj['config']
    overrides = {
        'base_url': base_url,
        'hostname': hostname,
        'count_limit': count_limit,
        'byte_limit': byte_limit,
        'gzip': gzip or None,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if overrides:
        try:
            cfg = SitemapConfig(**{**cfg.model_dump(), **overrides})
        except ValidationError as e:
            print_error(f'Неправильные параметры: {e}')

    try:
        report = Engine(cfg).build(read_items(source), out_dir)
    except Exception as e:
        print_error(f'Ошибка при сборке sitemap: {e}')

    summary = summarize(report)
    click.echo(f"Index: {summary['index']}")
    click.echo(f"Sitemaps: {summary['sitemaps']}")
    click.echo(f"Items: {summary['items']}")

    if report_path:
        try:
            saved = render_json(report, report_path)
            click.echo(f'JSON report: {saved}')
        except Exception as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))

if __name__ == "__main__":
    cli()
