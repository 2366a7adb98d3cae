"""Tests for the export writers (FASTA, GFF3, TSV, web JSON and the DuckDB sink)."""

import gzip
import json

import pytest
import yaml

from chado_pipeline.config.schema import AnnotationSubsetConfig
from chado_pipeline.errors import ConfigError, ExportError
from chado_pipeline.export import (
    table_for_export,
    wrap_sequence,
    write_all,
    write_gff,
    write_to_store,
)
from chado_pipeline.persistence import PipelineStore
from chado_pipeline.service import ServiceData

from conftest import CHROMOSOME_RESIDUES

PREFIX = "Schizosaccharomyces_pombe"


def _gff_ids(path) -> list[str]:
    ids = []
    for line in path.read_text().splitlines():
        if line.startswith("#"):
            continue
        attributes = dict(pair.split("=", 1) for pair in line.split("\t")[8].split(";"))
        ids.append(attributes["ID"])
    return ids


# ============================================================================
# FASTA
# ============================================================================


def test_wrap_sequence_at_sixty_columns():
    lines = wrap_sequence("A" * 130).splitlines()

    assert [len(line) for line in lines] == [60, 60, 10]


def test_wrap_empty_sequence():
    assert wrap_sequence("") == ""


# ============================================================================
# GFF3
# ============================================================================


def test_gff_strand_partition(tmp_path, web_data, config):
    write_gff(web_data, config, tmp_path)
    gff_dir = tmp_path / "gff"

    forward = _gff_ids(gff_dir / f"{PREFIX}_all_chromosomes_forward_strand.gff3")
    reverse = _gff_ids(gff_dir / f"{PREFIX}_all_chromosomes_reverse_strand.gff3")
    unstranded = _gff_ids(gff_dir / f"{PREFIX}_all_chromosomes_unstranded.gff3")
    combined = _gff_ids(gff_dir / f"{PREFIX}_all_chromosomes.gff3")

    assert "SPAC1.01" in forward
    assert "SPAC1.03" in forward
    assert "SPAC1.02" in reverse
    assert unstranded == ["SPAC1.LTR1"]
    assert sorted(combined) == sorted(forward + reverse + unstranded)


def test_gff_header_and_chromosome_file(tmp_path, web_data, config):
    write_gff(web_data, config, tmp_path)
    chromosome_file = tmp_path / "gff" / f"{PREFIX}_chromosome_I.gff3"

    text = chromosome_file.read_text()
    assert text.startswith("##gff-version 3\n")
    first_line = text.splitlines()[1].split("\t")
    assert first_line[0] == "I"
    assert first_line[1] == "PomBase"
    assert (first_line[3], first_line[4], first_line[6]) == ("11", "70", "+")


# ============================================================================
# TSV tables
# ============================================================================


def test_table_for_export_deduplicates_rendered_rows(web_data, config):
    subset_config = config.file_exports.annotation_subsets[0]

    df = table_for_export(web_data, subset_config)

    assert df.columns == ["gene_uniquename", "gene_name", "termid", "term_name"]
    assert sorted(df.rows()) == [
        ("SPAC1.01", "abc1", "GO:0000003", "grandchild process"),
        ("SPAC1.02", "def2", "GO:0000002", "child process"),
    ]


def test_table_for_export_unknown_term_is_a_config_error(web_data):
    subset_config = AnnotationSubsetConfig(
        term_ids=["GO:0000001", "GO:9999999"], file_name="missing_term_genes.tsv"
    )

    with pytest.raises(ConfigError, match="GO:9999999") as exc_info:
        table_for_export(web_data, subset_config)

    assert "missing_term_genes.tsv" in str(exc_info.value)


# ============================================================================
# Full export
# ============================================================================


def test_write_all_families_and_manifest(tmp_path, web_data, config):
    written = write_all(web_data, config, tmp_path)

    assert set(written) == {"web-json", "fasta", "gff", "misc"}
    assert (tmp_path / "web-json" / "gene" / "SPAC1.01.json").exists()
    assert (tmp_path / "web-json" / "term" / "GO:0000001.json").exists()
    assert (tmp_path / "misc" / "parent_process_genes.tsv").exists()
    assert (tmp_path / "fasta" / "chromosomes" / f"{PREFIX}_chromosome_I.fa").exists()

    manifest = yaml.safe_load((tmp_path / "export.manifest.yaml").read_text())
    assert manifest["database_name"] == "PomBase"
    assert manifest["file_counts"] == {family: len(paths) for family, paths in written.items()}
    assert manifest["statistics"]["gene_count"] == 4


def test_gene_page_json(tmp_path, web_data, config):
    write_all(web_data, config, tmp_path)

    page = json.loads((tmp_path / "web-json" / "gene" / "SPAC1.01.json").read_text())

    assert page["uniquename"] == "SPAC1.01"
    assert page["name"] == "abc1"


def test_chromosome_sequence_chunks(tmp_path, web_data, config):
    write_all(web_data, config, tmp_path)
    sequence_dir = tmp_path / "web-json" / "chromosome" / "chromosome_1" / "sequence"

    chunks = sorted((sequence_dir / "50").iterdir(), key=lambda p: int(p.name.split("_")[1]))
    assert [p.name for p in chunks] == ["chunk_0", "chunk_1", "chunk_2", "chunk_3"]
    assert "".join(p.read_text() for p in chunks) == CHROMOSOME_RESIDUES
    assert (sequence_dir / "100" / "chunk_1").read_text() == CHROMOSOME_RESIDUES[100:200]


def test_chromosome_fasta_is_wrapped(tmp_path, web_data, config):
    write_all(web_data, config, tmp_path)

    lines = (tmp_path / "fasta" / "chromosomes" / f"{PREFIX}_chromosome_I.fa").read_text().splitlines()

    assert lines[0] == ">I"
    assert "".join(lines[1:]) == CHROMOSOME_RESIDUES
    assert max(len(line) for line in lines[1:]) == 60


def test_api_maps_file_loads_into_service(tmp_path, web_data, config):
    write_all(web_data, config, tmp_path)
    maps_path = tmp_path / "web-json" / "api_maps.json.gz"

    with gzip.open(maps_path, "rt") as f:
        assert "termid_genes" in json.load(f)

    data = ServiceData.load(tmp_path / "web-json", config)
    assert data.get_gene_details("SPAC1.01").name == "abc1"
    assert data.maps.termid_genes == web_data.api_maps.termid_genes


def test_api_maps_file_is_reproducible(tmp_path, web_data, config):
    write_all(web_data, config, tmp_path / "a")
    write_all(web_data, config, tmp_path / "b")

    first = (tmp_path / "a" / "web-json" / "api_maps.json.gz").read_bytes()
    second = (tmp_path / "b" / "web-json" / "api_maps.json.gz").read_bytes()
    assert first == second


def test_unwritable_output_raises_export_error(tmp_path, web_data, config):
    blocker = tmp_path / "not_a_directory"
    blocker.write_text("")

    with pytest.raises(ExportError) as exc_info:
        write_all(web_data, config, blocker)

    assert "not_a_directory" in exc_info.value.message


# ============================================================================
# DuckDB sink
# ============================================================================


def test_write_to_store(tmp_path, web_data):
    with PipelineStore(tmp_path / "web.duckdb") as store:
        counts = write_to_store(web_data, store)
        result = store.execute_query(
            "SELECT data->>'$.name' AS name FROM web_json.gene WHERE id = 'SPAC1.01'"
        )

    assert counts["web_json.gene"] == len(web_data.genes)
    assert counts["web_json.term"] == len(web_data.terms)
    assert counts["web_json.reference"] == len(web_data.references)
    assert result["name"].to_list() == ["abc1"]
