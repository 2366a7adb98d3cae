"""Main CLI entry point for chado-pipeline.

Provides the command group with global options and the build and serve
subcommands.
"""

import logging
from pathlib import Path

import click

from chado_pipeline import __version__
from chado_pipeline.config.loader import load_config
from chado_pipeline.cli.build_cmd import build
from chado_pipeline.cli.serve_cmd import serve


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@click.group()
@click.option(
    '--config',
    type=click.Path(exists=True, path_type=Path),
    default='config/main_config.yaml',
    help='Path to the pipeline configuration (YAML or JSON)'
)
@click.option(
    '--verbose',
    is_flag=True,
    help='Enable verbose logging (DEBUG level)'
)
@click.pass_context
def cli(ctx, config, verbose):
    """chado-pipeline: build web-ready exports from a Chado snapshot and serve them.

    Denormalizes genes, terms, genotypes and references into JSON, FASTA,
    GFF3 and TSV files, and answers boolean gene queries over the result.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.debug("Verbose logging enabled")


@cli.command()
@click.pass_context
def info(ctx):
    """Display pipeline information and configuration summary."""
    config_path = ctx.obj['config_path']

    click.echo(f"chado-pipeline v{__version__}")
    click.echo(f"Config: {config_path}")
    click.echo()

    try:
        config = load_config(config_path)
    except Exception as e:
        click.echo(click.style(f"Error loading config: {e}", fg='red'), err=True)
        ctx.exit(1)

    click.echo(f"Config Hash: {config.config_hash()[:16]}...")
    click.echo()

    click.echo(click.style("Database:", bold=True))
    click.echo(f"  Name: {config.database_name}")
    load_organism = config.load_organism()
    click.echo(f"  Load Organism: {load_organism.genus} {load_organism.species} "
               f"(taxon {load_organism.taxonid})")
    click.echo(f"  Organisms: {len(config.organisms)}")
    click.echo(f"  Chromosomes: {len(config.chromosomes)}")
    click.echo()

    click.echo(click.style("Curation:", bold=True))
    click.echo(f"  Configured CVs: {', '.join(sorted(config.cv_config)) or '(none)'}")
    click.echo(f"  Slims: {', '.join(sorted(config.all_slims())) or '(none)'}")
    click.echo(f"  Annotation subset exports: {len(config.file_exports.annotation_subsets)}")
    click.echo()

    click.echo(click.style("Server:", bold=True))
    click.echo(f"  Search URL: {config.server.solr_url}")
    click.echo(f"  Max Retries: {config.server.max_retries}")
    click.echo(f"  Timeout: {config.server.timeout_seconds}s")


cli.add_command(build)
cli.add_command(serve)


if __name__ == '__main__':
    cli()
