"""Denormalization of the raw snapshot into the web data model."""

from chado_pipeline.build.builder import WebDataBuilder, build_web_data, gene_feature_type
from chado_pipeline.build.extension import ExtensionResolver
from chado_pipeline.build.ontology import OntologyIndex
from chado_pipeline.build.summary import make_summary

__all__ = [
    "WebDataBuilder",
    "build_web_data",
    "gene_feature_type",
    "ExtensionResolver",
    "OntologyIndex",
    "make_summary",
]
