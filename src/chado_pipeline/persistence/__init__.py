"""Persistence layer for raw snapshots, the JSON sink and provenance tracking."""

from chado_pipeline.persistence.duckdb_store import PipelineStore
from chado_pipeline.persistence.provenance import ProvenanceTracker

__all__ = ["PipelineStore", "ProvenanceTracker"]
