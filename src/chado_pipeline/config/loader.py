"""Configuration loading with YAML/JSON parsing and validation."""

from pathlib import Path
from typing import Any

import pydantic_yaml

from .schema import PipelineConfig


def load_config(config_path: Path | str) -> PipelineConfig:
    """
    Load and validate pipeline configuration.

    The configuration document may be YAML or JSON (JSON is parsed by the
    YAML loader unchanged).

    Args:
        config_path: Path to configuration file

    Returns:
        Validated PipelineConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        pydantic.ValidationError: If config is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw_content = f.read()

    return pydantic_yaml.parse_yaml_raw_as(PipelineConfig, raw_content)


def load_config_with_overrides(
    config_path: Path | str,
    overrides: dict[str, Any],
) -> PipelineConfig:
    """
    Load config and apply dictionary overrides.

    Args:
        config_path: Path to configuration file
        overrides: Values to override, nested keys as "server.solr_url"

    Returns:
        Validated PipelineConfig with overrides applied
    """
    config_dict = load_config(config_path).model_dump()

    for key, value in overrides.items():
        parts = key.split(".")
        target = config_dict
        for part in parts[:-1]:
            target = target[part]
        target[parts[-1]] = value

    return PipelineConfig.model_validate(config_dict)
