"""Environment-driven settings for the query service process."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class ServiceSettings(BaseSettings):
    """
    Settings for the query service.

    Read from environment variables with the CHADO_ prefix, eg.
    CHADO_WEB_JSON_DIR=/data/web-json.
    """

    model_config = SettingsConfigDict(env_prefix="CHADO_", env_file=".env", extra="ignore")

    app_name: str = "chado-pipeline"
    app_version: str = "0.1.0"
    config_path: Path = Path("config/main_config.yaml")
    web_json_dir: Path = Path("web-json")
    static_dir: Path | None = None


@lru_cache()
def get_settings() -> ServiceSettings:
    return ServiceSettings()
