"""Build command: turn a raw Chado snapshot into the export tree.

Orchestrates the full build:
1. Load config
2. Load the raw snapshot and optional secondary inputs
3. Build the cross-linked data model
4. Write every export family
5. Optionally write the JSON documents to a DuckDB sink
6. Save provenance
"""

import logging
import sys
from pathlib import Path

import click

from chado_pipeline import __version__
from chado_pipeline.build import build_web_data
from chado_pipeline.config.loader import load_config
from chado_pipeline.errors import PipelineError
from chado_pipeline.export import write_all, write_to_store
from chado_pipeline.persistence import PipelineStore, ProvenanceTracker
from chado_pipeline.raw import GoEcoMapping, RawData, load_domain_data, load_rnacentral_data

logger = logging.getLogger(__name__)


@click.command('build')
@click.option(
    '--snapshot',
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help='Raw snapshot: a DuckDB database or a JSON dump'
)
@click.option(
    '--output-dir',
    type=click.Path(path_type=Path),
    required=True,
    help='Directory to write the export tree to'
)
@click.option(
    '--domain-data',
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help='InterPro/Pfam domain matches JSON'
)
@click.option(
    '--rnacentral',
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help='RNAcentral Rfam annotations JSON'
)
@click.option(
    '--go-eco-mapping',
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help='GO evidence code to ECO mapping file'
)
@click.option(
    '--store-json',
    type=click.Path(path_type=Path),
    default=None,
    help='Also write gene/term/reference JSON to this DuckDB database'
)
@click.pass_context
def build(ctx, snapshot, output_dir, domain_data, rnacentral, go_eco_mapping, store_json):
    """Build web-ready JSON, FASTA, GFF3 and TSV files from a raw snapshot."""
    config_path = ctx.obj['config_path']
    click.echo(click.style("=== chado-pipeline build ===", bold=True))
    click.echo()

    try:
        click.echo("Loading configuration...")
        config = load_config(config_path)
        provenance = ProvenanceTracker(__version__, config)
        click.echo(click.style(f"  Config loaded: {config_path}", fg='green'))
        click.echo(f"  Database: {config.database_name}")
        click.echo()

        click.echo(f"Loading raw snapshot from {snapshot}...")
        raw = RawData.load(snapshot)
        provenance.record_step('load_snapshot', {'source': str(snapshot), **raw.row_counts()})

        domains = load_domain_data(domain_data) if domain_data else None
        rfam = load_rnacentral_data(rnacentral) if rnacentral else None
        eco_mapping = GoEcoMapping.read(go_eco_mapping) if go_eco_mapping else None
        provenance.record_step('load_inputs', {
            'domain_data': str(domain_data) if domain_data else None,
            'rnacentral': str(rnacentral) if rnacentral else None,
            'go_eco_mapping': str(go_eco_mapping) if go_eco_mapping else None,
        })
        click.echo(click.style("  Inputs loaded", fg='green'))
        click.echo()

        click.echo("Building data model...")
        web_data = build_web_data(raw, config, domains, rfam, eco_mapping)
        stats = {
            'gene_count': len(web_data.genes),
            'genotype_count': len(web_data.genotypes),
            'term_count': len(web_data.terms),
            'reference_count': len(web_data.references),
            'annotation_count': len(web_data.annotation_details),
        }
        provenance.record_step('build', stats)
        for name, count in stats.items():
            click.echo(f"  {name}: {count}")
        click.echo()

        click.echo(f"Writing export files to {output_dir}...")
        written = write_all(web_data, config, output_dir)
        provenance.record_step('export', {family: len(paths) for family, paths in written.items()})
        for family, paths in written.items():
            click.echo(f"  {family}: {len(paths)} files")
        click.echo()

        if store_json:
            click.echo(f"Writing JSON documents to {store_json}...")
            with PipelineStore(store_json) as store:
                counts = write_to_store(web_data, store)
                provenance.record_step('store_json', counts)
                provenance.save_to_store(store)
            click.echo(click.style("  Store written", fg='green'))
            click.echo()

        sidecar = provenance.save_sidecar(Path(output_dir) / "build")
        click.echo(f"Provenance: {sidecar}")
        click.echo()
        click.echo(click.style("Build complete", fg='green', bold=True))

    except (PipelineError, FileNotFoundError) as e:
        click.echo(click.style(f"Build failed: {e}", fg='red'), err=True)
        logger.exception("Build failed")
        sys.exit(1)
