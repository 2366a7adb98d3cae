"""Command-line interface for chado-pipeline."""
