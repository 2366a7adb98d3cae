"""Boolean gene query engine."""

from chado_pipeline.query.index import GeneIndex, QueryExpressionFilter, SingleOrMultiAllele
from chado_pipeline.query.nodes import (
    AndNode,
    FloatRangeNode,
    FloatRangeType,
    GeneListNode,
    IntRangeNode,
    IntRangeType,
    NotNode,
    OrNode,
    QueryNode,
    SubsetNode,
    TermNode,
)
from chado_pipeline.query.query import (
    NucleotideOptions,
    NucleotideSeqType,
    Query,
    QueryAPIResult,
    QueryOutputOptions,
    ResultRow,
)

__all__ = [
    "GeneIndex",
    "QueryExpressionFilter",
    "SingleOrMultiAllele",
    "AndNode",
    "FloatRangeNode",
    "FloatRangeType",
    "GeneListNode",
    "IntRangeNode",
    "IntRangeType",
    "NotNode",
    "OrNode",
    "QueryNode",
    "SubsetNode",
    "TermNode",
    "NucleotideOptions",
    "NucleotideSeqType",
    "Query",
    "QueryAPIResult",
    "QueryOutputOptions",
    "ResultRow",
]
