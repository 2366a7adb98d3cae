"""Integration tests for the CLI using CliRunner.

Tests:
- info prints the configuration summary
- build from a JSON snapshot writes every export family and provenance
- build --store-json writes the DuckDB sink
- build failures, including a malformed GO/ECO mapping, exit with status 1
- serve fails cleanly on an empty web-json directory
"""

import dataclasses
import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from chado_pipeline.cli.main import cli
from chado_pipeline.persistence import PipelineStore
from chado_pipeline.raw.snapshot import RAW_TABLES

from conftest import make_raw


@pytest.fixture
def snapshot_json(tmp_path):
    """The shared fixture snapshot dumped as JSON."""
    raw = make_raw()
    content = {
        table_name: [dataclasses.asdict(row) for row in getattr(raw, attr)]
        for table_name, (attr, _) in RAW_TABLES.items()
    }
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(content))
    return path


def test_info(config_path):
    runner = CliRunner()
    result = runner.invoke(cli, ['--config', str(config_path), 'info'])

    assert result.exit_code == 0
    assert "Name: PomBase" in result.output
    assert "Schizosaccharomyces pombe (taxon 4896)" in result.output
    assert "go_slim" in result.output


def test_build_from_json_snapshot(tmp_path, config_path, snapshot_json):
    output_dir = tmp_path / "export"
    runner = CliRunner()
    result = runner.invoke(cli, [
        '--config', str(config_path),
        'build',
        '--snapshot', str(snapshot_json),
        '--output-dir', str(output_dir),
    ])

    assert result.exit_code == 0, result.output
    assert "Build complete" in result.output
    assert "gene_count: 4" in result.output
    assert (output_dir / "web-json" / "api_maps.json.gz").exists()
    assert (output_dir / "gff" / "Schizosaccharomyces_pombe_all_chromosomes.gff3").exists()
    assert (output_dir / "export.manifest.yaml").exists()

    provenance = json.loads((output_dir / "build.provenance.json").read_text())
    step_names = [s["step_name"] for s in provenance["processing_steps"]]
    assert step_names == ["load_snapshot", "load_inputs", "build", "export"]


def test_build_with_store_json(tmp_path, config_path, snapshot_json):
    db_path = tmp_path / "web.duckdb"
    runner = CliRunner()
    result = runner.invoke(cli, [
        '--config', str(config_path),
        'build',
        '--snapshot', str(snapshot_json),
        '--output-dir', str(tmp_path / "export"),
        '--store-json', str(db_path),
    ])

    assert result.exit_code == 0, result.output
    with PipelineStore(db_path) as store:
        assert store.has_checkpoint("web_json.gene")
        assert store.execute_query("SELECT COUNT(*) AS n FROM _provenance")["n"].to_list() == [1]


def test_build_with_dangling_reference_fails(tmp_path, config_path, snapshot_json):
    content = json.loads(snapshot_json.read_text())
    content["raw_annotations"].append({
        "annotation_id": 99,
        "feature_uniquename": "SPAC1.01",
        "termid": "GO:9999999",
    })
    snapshot_json.write_text(json.dumps(content))

    runner = CliRunner()
    result = runner.invoke(cli, [
        '--config', str(config_path),
        'build',
        '--snapshot', str(snapshot_json),
        '--output-dir', str(tmp_path / "export"),
    ])

    assert result.exit_code == 1
    assert "Build failed" in result.output
    assert not (tmp_path / "export" / "web-json").exists()


def test_build_with_malformed_eco_mapping_fails(tmp_path, config_path, snapshot_json):
    mapping_path = tmp_path / "gaf-eco-mapping.txt"
    mapping_path.write_text("IDA\tDefault\tECO:0000314\nIMP\n")

    runner = CliRunner()
    result = runner.invoke(cli, [
        '--config', str(config_path),
        'build',
        '--snapshot', str(snapshot_json),
        '--output-dir', str(tmp_path / "export"),
        '--go-eco-mapping', str(mapping_path),
    ])

    assert result.exit_code == 1
    assert "Malformed input" in result.output
    assert not (tmp_path / "export" / "web-json").exists()


def test_serve_without_export_fails(tmp_path, config_path):
    empty_dir = tmp_path / "web-json"
    empty_dir.mkdir()

    runner = CliRunner()
    with patch('chado_pipeline.cli.serve_cmd.uvicorn.run') as run:
        result = runner.invoke(cli, [
            '--config', str(config_path),
            'serve',
            '--web-json-dir', str(empty_dir),
        ])

    assert result.exit_code == 1
    assert "Could not load export" in result.output
    run.assert_not_called()


def test_serve_runs_uvicorn(tmp_path, config_path, snapshot_json):
    output_dir = tmp_path / "export"
    runner = CliRunner()
    runner.invoke(cli, [
        '--config', str(config_path),
        'build',
        '--snapshot', str(snapshot_json),
        '--output-dir', str(output_dir),
    ])

    with patch('chado_pipeline.cli.serve_cmd.uvicorn.run') as run:
        result = runner.invoke(cli, [
            '--config', str(config_path),
            'serve',
            '--web-json-dir', str(output_dir / "web-json"),
            '--port', '9000',
        ])

    assert result.exit_code == 0, result.output
    assert run.call_args.kwargs["port"] == 9000
