# === FILE: nrtk_sync/cli.py ===
#!/usr/bin/env python3
"""
Точка входа клиента nrtk-sync для командной строки.

Команды:
  run       Стартовая синхронизация, затем режим из конфигурации
            (HTTP-сервер, опрос по таймеру или однократный запуск)
  sync      Выполнить ровно один цикл синхронизации
  serve     Синхронизация и HTTP-сервер независимо от NRTK_HTTP_SERVER_ENABLED
  config    Показать текущую конфигурацию (токен замаскирован)

Общие опции:
  --config PATH       YAML/JSON-файл, переопределяющий переменные окружения
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Дополнительно:
  --version, -v       Показать версию nrtk-sync

Пример:
  NRTK_API_UUID=... NRTK_API_TOKEN=... nrtk-sync run
"""
import sys
import asyncio
import json
from pathlib import Path

import click
from pydantic import ValidationError

from nrtk_sync import __version__
from nrtk_sync.config import load_config
from nrtk_sync.engine import SyncEngine
from nrtk_sync.errors import SyncError
from nrtk_sync.logger import init_logging, logger

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def _build_engine(ctx) -> SyncEngine:
    try:
        return SyncEngine(ctx.obj['config'])
    except SyncError as e:
        print_error(f'Ошибка конфигурации: {e}')


def _run(coro, interrupted=0):
    try:
        return asyncio.run(coro)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        return interrupted
    except SyncError as e:
        print_error(f'Фатальная ошибка синхронизации: {e}')


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='nrtk-sync, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='YAML/JSON-файл с переопределениями конфигурации.'
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
    default='%(asctime)s nrtk-sync: %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Синхронизация контента Newsroom Toolkit в локальное дерево и его раздача по HTTP."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except (ValidationError, ValueError, TypeError, OSError) as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('run', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def run(ctx):
    """Стартовый цикл и режим работы из конфигурации."""
    engine = _build_engine(ctx)
    ctx.exit(_run(engine.run()))


@cli.command('sync', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def sync(ctx):
    """Один цикл синхронизации; код выхода 1 при ошибке."""
    engine = _build_engine(ctx)
    outcome = _run(engine.run_cycle(), interrupted=None)
    if outcome is None:
        ctx.exit(0)
    click.echo(outcome.summary())
    ctx.exit(0 if outcome.ok else 1)


@cli.command('serve', context_settings=CONTEXT_SETTINGS)
@click.option('--host', default=None, help='Адрес HTTP-сервера (override NRTK_HTTP_SERVER_HOST)')
@click.option('--port', '-p', type=int, default=None, help='Порт HTTP-сервера (override NRTK_HTTP_SERVER_PORT)')
@click.pass_context
def serve(ctx, host, port):
    """Стартовый цикл и HTTP-сервер."""
    updates = {k: v for k, v in (('http_server_host', host), ('http_server_port', port)) if v is not None}
    if updates:
        ctx.obj['config'] = ctx.obj['config'].model_copy(update=updates)
    engine = _build_engine(ctx)
    ctx.exit(_run(engine.run(serve_http=True)))


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(json.dumps(cfg.public_dict(), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    cli()
