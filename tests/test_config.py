"""Tests for configuration loading and validation."""

import pytest
from pydantic import ValidationError

from chado_pipeline.config import load_config, load_config_with_overrides
from chado_pipeline.config.schema import PipelineConfig
from chado_pipeline.errors import ConfigError


def test_load_valid_config(config_path):
    """Test loading the example configuration."""
    config = load_config(config_path)

    assert isinstance(config, PipelineConfig)
    assert config.database_name == "PomBase"
    assert config.load_organism().full_name() == "Schizosaccharomyces_pombe"
    assert config.api_seq_chunk_sizes == [50, 100]
    assert config.server.subsets.prefixes_to_remove == ["feature_type:"]


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_invalid_config_missing_field(tmp_path):
    """Test that a config without organisms raises ValidationError."""
    invalid_config = tmp_path / "invalid.yaml"
    invalid_config.write_text("""
database_name: PomBase
load_organism_taxonid: 4896
""")

    with pytest.raises(ValidationError) as exc_info:
        load_config(invalid_config)

    assert "organisms" in str(exc_info.value)


def test_json_config_is_accepted(tmp_path):
    """JSON documents go through the YAML parser unchanged."""
    json_config = tmp_path / "config.json"
    json_config.write_text(
        '{"database_name": "JapoNet", "load_organism_taxonid": 4897,'
        ' "organisms": [{"taxonid": 4897, "genus": "Schizosaccharomyces", "species": "japonicus"}]}'
    )

    config = load_config(json_config)

    assert config.database_name == "JapoNet"
    assert config.load_organism().species == "japonicus"


def test_unknown_sort_field_rejected(tmp_path):
    invalid_config = tmp_path / "invalid_sort.yaml"
    invalid_config.write_text("""
database_name: PomBase
load_organism_taxonid: 4896
organisms:
  - {taxonid: 4896, genus: Schizosaccharomyces, species: pombe}
cv_config:
  fission_yeast_phenotype:
    sort_details_by: [colour]
""")

    with pytest.raises(ValidationError) as exc_info:
        load_config(invalid_config)

    assert "colour" in str(exc_info.value)


def test_non_positive_chunk_size_rejected(config):
    data = config.model_dump()
    data["api_seq_chunk_sizes"] = [0, 100]

    with pytest.raises(ValidationError):
        PipelineConfig.model_validate(data)


def test_cv_config_fallback(config):
    """Unconfigured CVs get a default record with an inferred feature type."""
    assert config.cv_config_by_name("fission_yeast_phenotype").single_or_multi_allele == "single"
    assert config.cv_config_by_name("cellular_component").feature_type == "gene"
    assert config.cv_config_by_name("extension:abc:gene").feature_type == "gene"
    assert config.cv_config_by_name("extension:abc:genotype").feature_type == "genotype"


def test_missing_load_organism(config):
    data = config.model_dump()
    data["load_organism_taxonid"] = 1

    with pytest.raises(ConfigError):
        PipelineConfig.model_validate(data).load_organism()


def test_missing_chromosome_config(config):
    with pytest.raises(ConfigError):
        config.find_chromosome_config("chromosome_99")


def test_go_slim_terms_become_a_slim(config):
    slims = config.all_slims()

    assert "go_slim" in slims
    assert [t.termid for t in slims["go_slim"].terms] == ["GO:0000002"]


def test_config_hash_deterministic(config_path):
    """Test that config hash is deterministic and changes with config."""
    config1 = load_config(config_path)
    config2 = load_config(config_path)

    assert config1.config_hash() == config2.config_hash()
    assert len(config1.config_hash()) == 64

    changed = load_config_with_overrides(config_path, {"server.solr_url": "http://solr:8983/solr"})
    assert changed.server.solr_url == "http://solr:8983/solr"
    assert changed.config_hash() != config1.config_hash()
