"""Per-entity JSON documents and bulk JSON for the front-end and search index."""

from pathlib import Path

import structlog

from chado_pipeline.config.schema import PipelineConfig
from chado_pipeline.export.files import write_gzip_json, write_json, write_text
from chado_pipeline.model import ChromosomeDetails, WebData

logger = structlog.get_logger()


def _dump(model) -> dict:
    return model.model_dump(mode="json")


def write_entity_pages(web_data: WebData, web_json_dir: Path) -> list[Path]:
    written = []
    for dir_name, pages in (
        ("gene", web_data.genes),
        ("genotype", web_data.genotypes),
        ("term", web_data.terms),
        ("reference", web_data.references),
    ):
        for page_id, page in pages.items():
            # ids such as "PMID:123" and "GO:0005634" are valid file names
            file_name = page_id.replace("/", "_") + ".json"
            written.append(write_json(web_json_dir / dir_name / file_name, _dump(page)))
    return written


def chromosome_json(chromosome: ChromosomeDetails) -> dict:
    return {
        "name": chromosome.name,
        "taxonid": chromosome.taxonid,
        "length": len(chromosome.residues),
        "ena_identifier": chromosome.ena_identifier,
        "gene_uniquenames": chromosome.gene_uniquenames,
    }


def write_chromosomes(web_data: WebData, config: PipelineConfig, web_json_dir: Path) -> list[Path]:
    """
    Write chromosome/{name}.json and the chunked sequence files.

    For every configured chunk size, chunk_{n} holds residues
    [n * size, (n + 1) * size).
    """
    written = []
    chromosome_dir = web_json_dir / "chromosome"
    for name, chromosome in web_data.chromosomes.items():
        written.append(write_json(chromosome_dir / f"{name}.json", chromosome_json(chromosome)))
        residues = chromosome.residues
        for chunk_size in config.api_seq_chunk_sizes:
            sequence_dir = chromosome_dir / name / "sequence" / str(chunk_size)
            for n, offset in enumerate(range(0, len(residues), chunk_size)):
                written.append(
                    write_text(sequence_dir / f"chunk_{n}", residues[offset:offset + chunk_size])
                )
    return written


def write_web_json(web_data: WebData, config: PipelineConfig, output_dir: Path) -> list[Path]:
    """Write everything under web-json/."""
    web_json_dir = Path(output_dir) / "web-json"
    written = write_entity_pages(web_data, web_json_dir)
    written += write_chromosomes(web_data, config, web_json_dir)

    written.append(
        write_json(web_json_dir / "gene_summaries.json", [_dump(s) for s in web_data.gene_summaries])
    )
    written.append(
        write_json(
            web_json_dir / "chromosome_summaries.json",
            [_dump(s) for s in web_data.chromosome_summaries],
        )
    )
    written.append(write_json(web_json_dir / "metadata.json", _dump(web_data.metadata)))
    written.append(
        write_json(web_json_dir / "recent_references.json", _dump(web_data.recent_references))
    )
    written.append(
        write_json(
            web_json_dir / "community_curated_references.json",
            [_dump(r) for r in web_data.all_community_curated],
        )
    )
    written.append(
        write_json(
            web_json_dir / "admin_curated_references.json",
            [_dump(r) for r in web_data.all_admin_curated],
        )
    )
    written.append(
        write_json(
            web_json_dir / "term_subsets.json",
            {name: _dump(s) for name, s in web_data.term_subsets.items()},
        )
    )
    written.append(
        write_json(
            web_json_dir / "gene_subsets.json",
            {name: _dump(s) for name, s in web_data.gene_subsets.items()},
        )
    )
    written.append(write_json(web_json_dir / "stats.json", _dump(web_data.stats)))

    written.append(write_gzip_json(web_json_dir / "api_maps.json.gz", web_data.api_maps.to_json_dict()))

    solr_dir = web_json_dir / "solr_data"
    written.append(
        write_gzip_json(solr_dir / "terms.json.gz", [_dump(s) for s in web_data.solr_term_summaries])
    )
    written.append(
        write_gzip_json(solr_dir / "genes.json.gz", [_dump(s) for s in web_data.gene_summaries])
    )
    written.append(
        write_gzip_json(
            solr_dir / "references.json.gz",
            [_dump(s) for s in web_data.solr_reference_summaries],
        )
    )

    logger.info("web_json_written", file_count=len(written), path=str(web_json_dir))
    return written
