from .loader import load_config, load_config_with_overrides
from .schema import (
    CvConfig,
    ChromosomeConfig,
    ConfigOrganism,
    ExtensionDisplayNames,
    InterestingParent,
    PipelineConfig,
    RelationOrder,
)
from .settings import ServiceSettings, get_settings

__all__ = [
    "load_config",
    "load_config_with_overrides",
    "PipelineConfig",
    "CvConfig",
    "ChromosomeConfig",
    "ConfigOrganism",
    "ExtensionDisplayNames",
    "InterestingParent",
    "RelationOrder",
    "ServiceSettings",
    "get_settings",
]
