"""Serialize the built data model to JSON, FASTA, GFF3 and TSV artifacts."""

from chado_pipeline.export.fasta import wrap_sequence, write_fasta
from chado_pipeline.export.gff import write_gff
from chado_pipeline.export.json_files import write_web_json
from chado_pipeline.export.store_sink import write_to_store
from chado_pipeline.export.tables import table_for_export, write_tables
from chado_pipeline.export.writer import write_all

__all__ = [
    "wrap_sequence",
    "write_fasta",
    "write_gff",
    "write_web_json",
    "write_to_store",
    "table_for_export",
    "write_tables",
    "write_all",
]
