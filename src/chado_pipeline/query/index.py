"""In-memory gene index the query engine evaluates against."""

from enum import Enum
from typing import Callable, Iterable, Optional

from chado_pipeline.model import (
    APIAlleleDetails,
    APIGeneSummary,
    APIMaps,
    GeneQueryData,
)


class SingleOrMultiAllele(str, Enum):
    SINGLE = "single"
    MULTI = "multi"
    BOTH = "both"


class QueryExpressionFilter(str, Enum):
    ANY = "any"
    NULL = "null"
    WT_OVEREXPRESSED = "wt-overexpressed"


def allele_matches_expression(
    allele: APIAlleleDetails, expression: Optional[QueryExpressionFilter]
) -> bool:
    if expression is None or expression == QueryExpressionFilter.ANY:
        return True
    if expression == QueryExpressionFilter.NULL:
        return allele.allele_type == "deletion" or allele.expression == "Null"
    return allele.allele_type == "wild_type" and allele.expression == "Overexpression"


class GeneIndex:
    """
    Read-only lookups derived from APIMaps.

    Gene subsets are registered under their full name and, for each
    configured prefix, under the name with that prefix removed.
    """

    def __init__(self, maps: APIMaps, subset_prefixes_to_remove: Iterable[str] = ()):
        self.termid_genes = maps.termid_genes
        self.termid_genotype_annotation = maps.termid_genotype_annotation
        self.gene_summaries: dict[str, APIGeneSummary] = maps.gene_summaries
        self.gene_query_data: dict[str, GeneQueryData] = maps.gene_query_data_map

        self.subsets: dict[str, list[str]] = {}
        for name, subset in maps.gene_subsets.items():
            self.subsets[name] = subset.elements
        for name, subset in maps.gene_subsets.items():
            for prefix in subset_prefixes_to_remove:
                if name.startswith(prefix):
                    self.subsets.setdefault(name[len(prefix):], subset.elements)

    def genes_of_termid(self, termid: str) -> list[str]:
        return list(self.termid_genes.get(termid, []))

    def genes_of_genotypes(
        self,
        termid: str,
        single_or_multi_allele: SingleOrMultiAllele,
        expression: Optional[QueryExpressionFilter],
    ) -> list[str]:
        """Genes of the matching alleles of genotypes annotated to termid."""
        genes = set()
        for annotation in self.termid_genotype_annotation.get(termid, []):
            if single_or_multi_allele == SingleOrMultiAllele.SINGLE and annotation.is_multi:
                continue
            if single_or_multi_allele == SingleOrMultiAllele.MULTI and not annotation.is_multi:
                continue
            for allele in annotation.alleles:
                if allele_matches_expression(allele, expression):
                    genes.add(allele.gene)
        return sorted(genes)

    def genes_of_subset(self, subset_name: str) -> list[str]:
        return list(self.subsets.get(subset_name, []))

    def filter_genes(self, predicate: Callable[[APIGeneSummary], bool]) -> list[str]:
        return [uniquename for uniquename, gene in self.gene_summaries.items() if predicate(gene)]

    def gene_summary(self, gene_uniquename: str) -> Optional[APIGeneSummary]:
        return self.gene_summaries.get(gene_uniquename)
