"""Annotation details, term annotation groups and the shared annotation block."""

from enum import Enum
from typing import ClassVar, Literal, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from chado_pipeline.model.extension import ExtPart
from chado_pipeline.model.short import (
    AlleleShort,
    GeneShort,
    GenotypeShort,
    ReferenceShort,
    TermShort,
)


class WithFromValue(BaseModel):
    """A "with" or "from" evidence value: a gene, a term or another identifier."""

    type: Literal["gene", "term", "identifier"]
    value: str

    def sort_key(self) -> tuple[str, str]:
        return (self.type, self.value)


class OntAnnotationDetail(BaseModel):
    """The atomic annotation fact linking a term to genes or a genotype."""

    id: int
    genes: list[str] = Field(default_factory=list)
    reference: Optional[str] = None
    evidence: Optional[str] = None
    eco_evidence: Optional[str] = None
    extension: list[ExtPart] = Field(default_factory=list)
    withs: list[WithFromValue] = Field(default_factory=list)
    froms: list[WithFromValue] = Field(default_factory=list)
    residue: Optional[str] = None
    qualifiers: list[str] = Field(default_factory=list)
    gene_ex_props: Optional[str] = None
    genotype: Optional[str] = None
    genotype_background: Optional[str] = None
    conditions: list[str] = Field(default_factory=list)
    assigned_by: Optional[str] = None
    throughput: Optional[str] = None
    date: Optional[str] = None


class TermSummaryRow(BaseModel):
    """A collapsed row used for compact table rendering."""

    gene_uniquenames: list[str] = Field(default_factory=list)
    genotype_uniquenames: list[str] = Field(default_factory=list)
    extension: list[ExtPart] = Field(default_factory=list)


class OntTermAnnotations(BaseModel):
    """All annotations of one host to one term, NOT annotations kept apart."""

    term: str
    is_not: bool = False
    rel_names: list[str] = Field(default_factory=list)
    annotations: list[int] = Field(default_factory=list)
    summary: Optional[list[TermSummaryRow]] = None


class AnnotationBlock(BaseModel):
    """
    Annotations and lookup maps embedded in every annotation host.

    cv_annotations maps a CV name to its term groups. Every gene, genotype,
    allele, term and reference mentioned by the annotations has an entry in
    the matching *_by_* map; excluded genes and references map to None.
    """

    cv_annotations: dict[str, list[OntTermAnnotations]] = Field(default_factory=dict)
    annotation_details: dict[int, OntAnnotationDetail] = Field(default_factory=dict)
    genes_by_uniquename: dict[str, Optional[GeneShort]] = Field(default_factory=dict)
    genotypes_by_uniquename: dict[str, GenotypeShort] = Field(default_factory=dict)
    alleles_by_uniquename: dict[str, AlleleShort] = Field(default_factory=dict)
    terms_by_termid: dict[str, TermShort] = Field(default_factory=dict)
    references_by_uniquename: dict[str, Optional[ReferenceShort]] = Field(default_factory=dict)

    def detail_ids(self) -> list[int]:
        return sorted(
            {
                detail_id
                for groups in self.cv_annotations.values()
                for group in groups
                for detail_id in group.annotations
            }
        )


@runtime_checkable
class AnnotationHost(Protocol):
    """An entity page that carries annotations: gene, genotype, term or reference."""

    host_type: ClassVar[str]
    annotations: AnnotationBlock

    @property
    def host_id(self) -> str: ...


def host_annotation_key(host: AnnotationHost) -> tuple[str, str]:
    """Key of the host in the per-host annotation indexes, eg. ("gene", "SPAC1.01")."""
    return (host.host_type, host.host_id)


class InteractionType(str, Enum):
    PHYSICAL = "physical"
    GENETIC = "genetic"


class InteractionAnnotation(BaseModel):
    gene_uniquename: str
    interactor_uniquename: str
    interaction_type: InteractionType
    evidence: Optional[str] = None
    reference_uniquename: Optional[str] = None
    throughput: Optional[str] = None

    def sort_key(self) -> tuple:
        return (
            self.gene_uniquename,
            self.interactor_uniquename,
            self.evidence or "",
            self.reference_uniquename or "",
        )


class OrthologAnnotation(BaseModel):
    gene_uniquename: str
    ortholog_uniquename: str
    ortholog_taxonid: int
    evidence: Optional[str] = None
    reference_uniquename: Optional[str] = None

    def sort_key(self) -> tuple:
        return (
            self.ortholog_taxonid,
            self.gene_uniquename,
            self.ortholog_uniquename,
            self.reference_uniquename or "",
        )


class ParalogAnnotation(BaseModel):
    gene_uniquename: str
    paralog_uniquename: str
    evidence: Optional[str] = None
    reference_uniquename: Optional[str] = None

    def sort_key(self) -> tuple:
        return (
            self.gene_uniquename,
            self.paralog_uniquename,
            self.reference_uniquename or "",
        )


class TargetOfAnnotation(BaseModel):
    """The reciprocal view of an extension whose range is this gene."""

    ontology_name: str
    ext_rel_display_name: str
    genes: list[str] = Field(default_factory=list)
    genotype_uniquename: Optional[str] = None
    reference_uniquename: Optional[str] = None

    def sort_key(self) -> tuple:
        return (
            self.ontology_name,
            self.ext_rel_display_name,
            tuple(self.genes),
            self.genotype_uniquename or "",
            self.reference_uniquename or "",
        )


class TermAndRelation(BaseModel):
    termid: str
    term_name: str
    relation_name: str
