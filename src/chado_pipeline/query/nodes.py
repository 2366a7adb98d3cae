"""
Boolean query tree.

Every node type has an exec(index) method returning a list of gene
uniquenames without duplicates. A malformed tree raises QueryError, which
propagates unchanged to the caller; no partial result is produced.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from chado_pipeline.errors import QueryError
from chado_pipeline.model import APIGeneSummary
from chado_pipeline.query.index import GeneIndex, QueryExpressionFilter, SingleOrMultiAllele


class IntRangeType(str, Enum):
    GENOME_RANGE_CONTAINS = "genome_range_contains"
    PROTEIN_LENGTH = "protein_length"
    TM_DOMAIN_COUNT = "tm_domain_count"
    EXON_COUNT = "exon_count"


class FloatRangeType(str, Enum):
    PROTEIN_MOL_WEIGHT = "protein_mol_weight"


def _in_range(value, start, end) -> bool:
    return (start is None or value >= start) and (end is None or value <= end)


def _first_protein(gene: APIGeneSummary):
    if gene.transcripts:
        return gene.transcripts[0].protein
    return None


class OrNode(BaseModel):
    node_type: Literal["or"] = "or"
    nodes: list["QueryNode"]

    def exec(self, index: GeneIndex) -> list[str]:
        if not self.nodes:
            raise QueryError("illegal query: OR operator has no nodes")
        seen = set()
        result = []
        for node in self.nodes:
            for gene in node.exec(index):
                if gene not in seen:
                    seen.add(gene)
                    result.append(gene)
        return result


class AndNode(BaseModel):
    node_type: Literal["and"] = "and"
    nodes: list["QueryNode"]

    def exec(self, index: GeneIndex) -> list[str]:
        if not self.nodes:
            raise QueryError("illegal query: AND operator has no nodes")
        first = self.nodes[0].exec(index)
        current = set(first)
        for node in self.nodes[1:]:
            current &= set(node.exec(index))
        # keep the first child's order
        return [gene for gene in dict.fromkeys(first) if gene in current]


class NotNode(BaseModel):
    node_type: Literal["not"] = "not"
    node_a: "QueryNode"
    node_b: "QueryNode"

    def exec(self, index: GeneIndex) -> list[str]:
        excluded = set(self.node_b.exec(index))
        return [gene for gene in dict.fromkeys(self.node_a.exec(index)) if gene not in excluded]


class TermNode(BaseModel):
    node_type: Literal["term"] = "term"
    termid: str
    name: Optional[str] = None
    single_or_multi_allele: Optional[SingleOrMultiAllele] = None
    expression: Optional[QueryExpressionFilter] = None

    def exec(self, index: GeneIndex) -> list[str]:
        if self.single_or_multi_allele is None and self.expression is None:
            return index.genes_of_termid(self.termid)
        return index.genes_of_genotypes(
            self.termid,
            self.single_or_multi_allele or SingleOrMultiAllele.BOTH,
            self.expression,
        )


class SubsetNode(BaseModel):
    node_type: Literal["subset"] = "subset"
    subset_name: str

    def exec(self, index: GeneIndex) -> list[str]:
        return index.genes_of_subset(self.subset_name)


class GeneListNode(BaseModel):
    node_type: Literal["gene_list"] = "gene_list"
    ids: list[str]

    def exec(self, index: GeneIndex) -> list[str]:
        return list(dict.fromkeys(self.ids))


class IntRangeNode(BaseModel):
    node_type: Literal["int_range"] = "int_range"
    range_type: IntRangeType
    start: Optional[int] = None
    end: Optional[int] = None
    chromosome_name: Optional[str] = None

    def exec(self, index: GeneIndex) -> list[str]:
        start, end = self.start, self.end

        if self.range_type == IntRangeType.GENOME_RANGE_CONTAINS:
            def predicate(gene: APIGeneSummary) -> bool:
                location = gene.location
                if location is None:
                    return False
                if self.chromosome_name is not None and location.chromosome_name != self.chromosome_name:
                    return False
                return location.overlaps(start, end)

        elif self.range_type == IntRangeType.PROTEIN_LENGTH:
            def predicate(gene: APIGeneSummary) -> bool:
                protein = _first_protein(gene)
                return protein is not None and _in_range(protein.length, start, end)

        elif self.range_type == IntRangeType.TM_DOMAIN_COUNT:
            def predicate(gene: APIGeneSummary) -> bool:
                return bool(gene.transcripts) and _in_range(gene.tm_domain_count, start, end)

        else:
            def predicate(gene: APIGeneSummary) -> bool:
                return bool(gene.transcripts) and _in_range(gene.exon_count, start, end)

        return index.filter_genes(predicate)


class FloatRangeNode(BaseModel):
    node_type: Literal["float_range"] = "float_range"
    range_type: FloatRangeType
    start: Optional[float] = None
    end: Optional[float] = None

    def exec(self, index: GeneIndex) -> list[str]:
        def predicate(gene: APIGeneSummary) -> bool:
            protein = _first_protein(gene)
            if protein is None or protein.molecular_weight is None:
                return False
            return _in_range(protein.molecular_weight, self.start, self.end)

        return index.filter_genes(predicate)


QueryNode = Annotated[
    Union[
        OrNode,
        AndNode,
        NotNode,
        TermNode,
        SubsetNode,
        GeneListNode,
        IntRangeNode,
        FloatRangeNode,
    ],
    Field(discriminator="node_type"),
]

OrNode.model_rebuild()
AndNode.model_rebuild()
NotNode.model_rebuild()
