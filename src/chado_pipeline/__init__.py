"""Chado curation snapshot to web JSON pipeline and gene query engine."""

__version__ = "0.1.0"
