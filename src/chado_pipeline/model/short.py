"""Short-form records stored in the lookup maps of annotation hosts."""

from typing import Optional

from pydantic import BaseModel, Field


class GeneShort(BaseModel):
    uniquename: str
    name: Optional[str] = None
    product: Optional[str] = None

    def sort_key(self) -> tuple:
        # named genes first, by name, then unnamed genes by uniquename
        if self.name:
            return (0, self.name, self.uniquename)
        return (1, "", self.uniquename)

    def display_name(self) -> str:
        return self.name or self.uniquename


class TermShort(BaseModel):
    termid: str
    name: str
    cv_name: str
    interesting_parents: list[str] = Field(default_factory=list)
    is_obsolete: bool = False
    gene_count: int = 0
    genotype_count: int = 0
    xrefs: list[str] = Field(default_factory=list)

    def sort_key(self) -> tuple:
        return (self.name, self.termid)


class ReferenceShort(BaseModel):
    uniquename: str
    title: Optional[str] = None
    citation: Optional[str] = None
    publication_year: Optional[str] = None
    authors_abbrev: Optional[str] = None
    gene_count: int = 0
    genotype_count: int = 0


class AlleleShort(BaseModel):
    uniquename: str
    name: Optional[str] = None
    allele_type: str
    description: Optional[str] = None
    gene_uniquename: str

    def display_name(self) -> str:
        name = self.name or "unnamed"
        if self.description and self.allele_type != "deletion":
            return f"{name}({self.description})"
        return name


class ExpressedAllele(BaseModel):
    expression: Optional[str] = None
    allele_uniquename: str


class GenotypeShort(BaseModel):
    uniquename: str
    display_uniquename: str
    name: Optional[str] = None
    background: Optional[str] = None
    expressed_alleles: list[ExpressedAllele] = Field(default_factory=list)

    @property
    def is_multi_allele(self) -> bool:
        return len(self.expressed_alleles) > 1


class ChromosomeShort(BaseModel):
    name: str
    length: int
    ena_identifier: Optional[str] = None
    gene_count: int = 0
    coding_gene_count: int = 0
