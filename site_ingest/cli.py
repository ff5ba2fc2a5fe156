# === FILE: site_ingest/cli.py ===
#!/usr/bin/env python3
"""
Command line entry point of SiteIngest.

Commands:
  crawl URL    Register a website source for a workspace and crawl it
  sources      List the workspace's sources with page counts
  pages        List the workspace's crawled pages
  config       Show the effective configuration
  serve        Run the HTTP API

Common options:
  --config PATH       Path to the YAML/JSON config (default: configs/default.yaml)
  --limit INT         Page budget of a crawl (overrides max_pages)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stdout only when omitted)

Example:
  site-ingest --limit 25 crawl example.com --workspace acme
"""
import asyncio
import json
import sys
from pathlib import Path

import click
from aiohttp import web

from site_ingest import __version__
from site_ingest.api import create_app
from site_ingest.config import load_config
from site_ingest.engine import Engine
from site_ingest.logger import DEFAULT_FORMAT, init_logging
from site_ingest.storage import StoreError

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def _dump(data, pretty: bool) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2 if pretty else None)


async def _with_engine(cfg, action):
    engine = await Engine(cfg).init()
    return await action(engine)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteIngest, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default='configs/default.yaml',
    show_default=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to the configuration file.'
)
@click.option(
    '--limit', '-l', 'limit',
    type=click.IntRange(min=1),
    default=None,
    help='Page budget of a crawl (overrides max_pages)'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file (stdout only when omitted)'
)
@click.pass_context
def cli(ctx, config_path, limit, log_level, log_file):
    """SiteIngest command group."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=DEFAULT_FORMAT,
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Failed to load configuration: {e}')
    if limit is not None:
        cfg = cfg.model_copy(update={'max_pages': limit})
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--workspace', '-w', 'workspace_id', required=True, help='Workspace owning the source')
@click.option('--pretty', is_flag=True, help='Indent JSON output (2 spaces)')
@click.pass_context
def crawl(ctx, url, workspace_id, pretty):
    """Register URL as a website source and crawl it."""
    cfg = ctx.obj['config']

    async def action(engine):
        return await engine.ingest_website(workspace_id, url, cfg.max_pages)

    try:
        source, result = asyncio.run(_with_engine(cfg, action))
    except StoreError as e:
        print_error(f'Storage error: {e}')
    click.echo(_dump({'source': source.to_dict(), 'result': result.to_dict()}, pretty))


@cli.command('sources', context_settings=CONTEXT_SETTINGS)
@click.option('--workspace', '-w', 'workspace_id', required=True, help='Workspace to list')
@click.option('--pretty', is_flag=True, help='Indent JSON output (2 spaces)')
@click.pass_context
def sources(ctx, workspace_id, pretty):
    """List sources with page counts and latest crawl time."""
    cfg = ctx.obj['config']
    try:
        rows = asyncio.run(_with_engine(cfg, lambda engine: engine.list_sources(workspace_id)))
    except StoreError as e:
        print_error(f'Storage error: {e}')
    click.echo(_dump(rows, pretty))


@cli.command('pages', context_settings=CONTEXT_SETTINGS)
@click.option('--workspace', '-w', 'workspace_id', required=True, help='Workspace to list')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Write the list to a JSON file instead of stdout'
)
@click.option('--pretty', is_flag=True, help='Indent JSON output (2 spaces)')
@click.pass_context
def pages(ctx, workspace_id, json_output, pretty):
    """List crawled pages, most recently crawled first."""
    cfg = ctx.obj['config']
    try:
        rows = asyncio.run(_with_engine(cfg, lambda engine: engine.list_pages(workspace_id)))
    except StoreError as e:
        print_error(f'Storage error: {e}')

    if not json_output:
        click.echo(_dump(rows, pretty))
        return

    try:
        json_output.parent.mkdir(parents=True, exist_ok=True)
        json_output.write_text(_dump(rows, pretty), encoding='utf-8')
    except OSError as e:
        print_error(f'Failed to save JSON: {e}')
    click.echo(f'JSON report: {json_output}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the current configuration as JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


@cli.command('serve', context_settings=CONTEXT_SETTINGS)
@click.option('--host', default=None, help='Bind address (overrides config)')
@click.option('--port', type=int, default=None, help='Port (overrides config)')
@click.pass_context
def serve(ctx, host, port):
    """Run the HTTP API."""
    cfg = ctx.obj['config']
    app = create_app(Engine(cfg))
    web.run_app(app, host=host or cfg.host, port=port or cfg.port)


if __name__ == "__main__":
    cli()
