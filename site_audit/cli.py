# === FILE: site_audit/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска аудита SiteAudit через командную строку.

Команды:
  audit     Обойти сайт, проверить ссылки и вывести/сохранить отчёт
  config    Показать итоговую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Команда audit опции:
  --url URL               Стартовый URL (override seed_url)
  --max-depth INT         Максимальная глубина обхода
  --delay MS              Пауза между запросами, мс
  --strict-robots         Не загружать страницы, запрещённые robots.txt
  --json PATH             Сохранить JSON-отчёт в файл
  --pretty                Преформатировать JSON-вывод (отступ 2)
  --audit-timeout SEC     Таймаут всего аудита (секунд)

Пример:
  site-audit audit --url https://example.com --max-depth 2 --json report.json
"""
import asyncio
import sys
from pathlib import Path
from typing import Any, Optional

import click
from pydantic import ValidationError

from site_audit import __version__
from site_audit.config import AuditConfig, load_config
from site_audit.crawler.models import ProgressEvent
from site_audit.engine import start_audit
from site_audit.logger import get_logger, init_logging
from site_audit.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])
_DEFAULT_CFG = Path("configs/default.yaml")


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def _build_config(config_path: Optional[Path], **overrides: Any) -> AuditConfig:
    if config_path is None and not _DEFAULT_CFG.exists():
        return AuditConfig(**{k: v for k, v in overrides.items() if v is not None})
    return load_config(config_path, **overrides)


def _log_progress(event: ProgressEvent) -> None:
    get_logger("progress").debug("[%d/%d] %s", event.completed, event.total, event.message)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteAudit, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
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
    """Группа команд SiteAudit CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path


@cli.command('audit', context_settings=CONTEXT_SETTINGS)
@click.option('--url', '-u', 'seed_url', default=None, help='Стартовый URL (override seed_url)')
@click.option('--max-depth', '-d', 'max_depth', type=int, default=None, help='Максимальная глубина обхода')
@click.option('--delay', 'delay_ms', type=int, default=None, help='Пауза между запросами, мс')
@click.option(
    '--strict-robots/--no-strict-robots', 'strict_robots',
    default=None,
    help='Не загружать страницы, запрещённые robots.txt'
)
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.option(
    '--audit-timeout', 'audit_timeout',
    type=float,
    default=None,
    help='Таймаут всего аудита (секунд)'
)
@click.pass_context
def audit(ctx, seed_url, max_depth, delay_ms, strict_robots, json_output, pretty, audit_timeout):
    """Запустить аудит и вывести или сохранить отчёт."""
    try:
        cfg = _build_config(
            ctx.obj['config_path'],
            seed_url=seed_url,
            max_depth=max_depth,
            delay_ms=delay_ms,
            strict_robots=strict_robots,
        )
    except (ValidationError, FileNotFoundError, ValueError, TypeError) as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')

    try:
        coro = start_audit(cfg, on_progress=_log_progress)
        if audit_timeout:
            report = asyncio.run(asyncio.wait_for(coro, timeout=audit_timeout))
        else:
            report = asyncio.run(coro)
    except asyncio.TimeoutError:
        print_error(f'Аудит не завершён за {audit_timeout} секунд')
    except Exception as e:
        print_error(f'Ошибка при аудите: {e}')

    if not json_output:
        click.echo(report.json(pretty=pretty))
        return

    try:
        saved_json = render_json(report, json_output, pretty=pretty)
    except OSError as e:
        print_error(f'Ошибка при сохранении JSON: {e}')
    click.echo(f'JSON report: {saved_json}')
    click.echo(
        f'Pages: {len(report.pages)}, issues: {len(report.issues)}, '
        f'health score: {report.health_score}'
    )


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.option('--url', '-u', 'seed_url', default=None, help='Стартовый URL (override seed_url)')
@click.pass_context
def show_config(ctx, seed_url):
    """Показать итоговую конфигурацию в JSON."""
    try:
        cfg = _build_config(ctx.obj['config_path'], seed_url=seed_url)
    except (ValidationError, FileNotFoundError, ValueError, TypeError) as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
