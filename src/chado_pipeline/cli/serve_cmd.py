"""Serve command: run the query service over a written export."""

import logging
import sys
from pathlib import Path

import click
import uvicorn

from chado_pipeline import __version__
from chado_pipeline.config import ServiceSettings
from chado_pipeline.service import SnapshotLoadError, app_from_settings

logger = logging.getLogger(__name__)


@click.command('serve')
@click.option(
    '--web-json-dir',
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    required=True,
    help='The web-json directory of a finished build'
)
@click.option(
    '--static-dir',
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help='Directory of static front-end files'
)
@click.option('--host', default='127.0.0.1', show_default=True)
@click.option('--port', type=int, default=8500, show_default=True)
@click.pass_context
def serve(ctx, web_json_dir, static_dir, host, port):
    """Serve entity lookups, gene queries and term completion over HTTP."""
    settings = ServiceSettings(
        config_path=ctx.obj['config_path'],
        web_json_dir=web_json_dir,
        static_dir=static_dir,
        app_version=__version__,
    )
    try:
        app = app_from_settings(settings)
    except SnapshotLoadError as e:
        click.echo(click.style(f"Could not load export: {e}", fg='red'), err=True)
        sys.exit(1)

    click.echo(f"Listening on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level='debug' if ctx.obj['verbose'] else 'info')
