"""Provenance tracking for build reproducibility."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


class ProvenanceTracker:
    """
    Tracks provenance metadata for a build.

    Records pipeline version, config hash, the database the snapshot came
    from and each processing step with its counts.
    """

    def __init__(self, pipeline_version: str, config: "PipelineConfig"):
        self.pipeline_version = pipeline_version
        self.config_hash = config.config_hash()
        self.database_name = config.database_name
        self.processing_steps = []
        self.created_at = datetime.now(timezone.utc)

    def record_step(self, step_name: str, details: Optional[dict] = None) -> None:
        """
        Record a processing step.

        Args:
            step_name: Name of the processing step
            details: Optional dictionary of additional details
        """
        step = {
            "step_name": step_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if details:
            step["details"] = details
        self.processing_steps.append(step)

    def get_steps(self) -> list[dict]:
        return self.processing_steps

    def create_metadata(self) -> dict:
        return {
            "pipeline_version": self.pipeline_version,
            "database_name": self.database_name,
            "config_hash": self.config_hash,
            "created_at": self.created_at.isoformat(),
            "processing_steps": self.processing_steps,
        }

    def save_sidecar(self, output_path: Path) -> Path:
        """
        Save provenance metadata as a JSON sidecar file.

        Args:
            output_path: Path to the main output file or directory.
                         Sidecar will be saved as {path}.provenance.json

        Returns:
            Path of the written sidecar
        """
        output_path = Path(output_path)
        sidecar_path = output_path.with_name(output_path.name + ".provenance.json")
        sidecar_path.parent.mkdir(parents=True, exist_ok=True)

        with open(sidecar_path, "w") as f:
            json.dump(self.create_metadata(), f, indent=2, default=str)
        return sidecar_path

    def save_to_store(self, store: "PipelineStore") -> None:
        """Append this build's provenance to the _provenance table."""
        metadata = self.create_metadata()

        store.conn.execute("""
            CREATE TABLE IF NOT EXISTS _provenance (
                version VARCHAR,
                config_hash VARCHAR,
                created_at TIMESTAMP,
                steps_json VARCHAR
            )
        """)

        store.conn.execute("""
            INSERT INTO _provenance (version, config_hash, created_at, steps_json)
            VALUES (?, ?, ?, ?)
        """, [
            metadata["pipeline_version"],
            metadata["config_hash"],
            metadata["created_at"],
            json.dumps(metadata["processing_steps"]),
        ])

    @staticmethod
    def load_sidecar(sidecar_path: Path) -> dict:
        with open(sidecar_path) as f:
            return json.load(f)

    @classmethod
    def from_config(
        cls,
        config: "PipelineConfig",
        version: Optional[str] = None
    ) -> "ProvenanceTracker":
        """
        Create ProvenanceTracker from a PipelineConfig.

        Args:
            config: PipelineConfig instance
            version: Pipeline version string. If None, uses chado_pipeline.__version__
        """
        if version is None:
            from chado_pipeline import __version__
            version = __version__

        return cls(version, config)
