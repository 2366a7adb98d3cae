"""Entity pages: genes, genotypes, terms, references and chromosomes."""

from typing import ClassVar, Optional

from pydantic import BaseModel, Field

from chado_pipeline.model.annotation import (
    AnnotationBlock,
    InteractionAnnotation,
    OrthologAnnotation,
    ParalogAnnotation,
    TargetOfAnnotation,
    TermAndRelation,
)
from chado_pipeline.model.features import (
    ChromosomeLocation,
    DeletionViability,
    InterProMatch,
    RfamAnnotation,
    SynonymDetails,
    TmDomainCoord,
    TranscriptDetails,
)
from chado_pipeline.model.short import (
    ExpressedAllele,
    GeneShort,
    GenotypeShort,
    ReferenceShort,
    TermShort,
)


class GeneDetails(BaseModel):
    host_type: ClassVar[str] = "gene"

    uniquename: str
    name: Optional[str] = None
    taxonid: int
    product: Optional[str] = None
    feature_type: str = "gene"
    deletion_viability: DeletionViability = DeletionViability.UNKNOWN
    uniprot_identifier: Optional[str] = None
    characterisation_status: Optional[str] = None
    taxonomic_distribution: Optional[str] = None
    location: Optional[ChromosomeLocation] = None
    gene_neighbourhood: list[GeneShort] = Field(default_factory=list)
    transcripts: list[TranscriptDetails] = Field(default_factory=list)
    synonyms: list[SynonymDetails] = Field(default_factory=list)
    dbxrefs: list[str] = Field(default_factory=list)
    interpro_matches: list[InterProMatch] = Field(default_factory=list)
    tm_domain_coords: list[TmDomainCoord] = Field(default_factory=list)
    rfam_annotations: list[RfamAnnotation] = Field(default_factory=list)
    physical_interactions: list[InteractionAnnotation] = Field(default_factory=list)
    genetic_interactions: list[InteractionAnnotation] = Field(default_factory=list)
    ortholog_annotations: list[OrthologAnnotation] = Field(default_factory=list)
    paralog_annotations: list[ParalogAnnotation] = Field(default_factory=list)
    target_of_annotations: list[TargetOfAnnotation] = Field(default_factory=list)
    subset_termids: list[str] = Field(default_factory=list)
    annotations: AnnotationBlock = Field(default_factory=AnnotationBlock)

    @property
    def host_id(self) -> str:
        return self.uniquename

    def to_short(self) -> GeneShort:
        return GeneShort(uniquename=self.uniquename, name=self.name, product=self.product)

    def first_protein(self):
        if self.transcripts and self.transcripts[0].protein is not None:
            return self.transcripts[0].protein
        return None


class GenotypeDetails(BaseModel):
    host_type: ClassVar[str] = "genotype"

    uniquename: str
    display_uniquename: str
    name: Optional[str] = None
    taxonid: int
    background: Optional[str] = None
    expressed_alleles: list[ExpressedAllele] = Field(default_factory=list)
    annotations: AnnotationBlock = Field(default_factory=AnnotationBlock)

    @property
    def host_id(self) -> str:
        return self.uniquename

    def to_short(self) -> GenotypeShort:
        return GenotypeShort(
            uniquename=self.uniquename,
            display_uniquename=self.display_uniquename,
            name=self.name,
            background=self.background,
            expressed_alleles=self.expressed_alleles,
        )


class TermDetails(BaseModel):
    host_type: ClassVar[str] = "term"

    termid: str
    name: str
    cv_name: str
    annotation_feature_type: str = "gene"
    definition: Optional[str] = None
    is_obsolete: bool = False
    synonyms: list[SynonymDetails] = Field(default_factory=list)
    direct_ancestors: list[TermAndRelation] = Field(default_factory=list)
    interesting_parents: list[str] = Field(default_factory=list)
    in_subsets: list[str] = Field(default_factory=list)
    xrefs: list[str] = Field(default_factory=list)
    genes_annotated_with: list[str] = Field(default_factory=list)
    single_allele_genotype_uniquenames: list[str] = Field(default_factory=list)
    gene_count: int = 0
    genotype_count: int = 0
    annotations: AnnotationBlock = Field(default_factory=AnnotationBlock)

    @property
    def host_id(self) -> str:
        return self.termid

    def to_short(self) -> TermShort:
        return TermShort(
            termid=self.termid,
            name=self.name,
            cv_name=self.cv_name,
            interesting_parents=self.interesting_parents,
            is_obsolete=self.is_obsolete,
            gene_count=self.gene_count,
            genotype_count=self.genotype_count,
            xrefs=self.xrefs,
        )


class ReferenceDetails(BaseModel):
    host_type: ClassVar[str] = "reference"

    uniquename: str
    title: Optional[str] = None
    citation: Optional[str] = None
    authors: Optional[str] = None
    authors_abbrev: Optional[str] = None
    abstract: Optional[str] = None
    pubmed_publication_date: Optional[str] = None
    publication_year: Optional[str] = None
    canto_triage_status: Optional[str] = None
    canto_curator_role: Optional[str] = None
    canto_curator_name: Optional[str] = None
    canto_approved_date: Optional[str] = None
    canto_session_submitted_date: Optional[str] = None
    canto_added_date: Optional[str] = None
    approved_date: Optional[str] = None
    gene_count: int = 0
    genotype_count: int = 0
    physical_interactions: list[InteractionAnnotation] = Field(default_factory=list)
    genetic_interactions: list[InteractionAnnotation] = Field(default_factory=list)
    ortholog_annotations: list[OrthologAnnotation] = Field(default_factory=list)
    paralog_annotations: list[ParalogAnnotation] = Field(default_factory=list)
    annotations: AnnotationBlock = Field(default_factory=AnnotationBlock)

    @property
    def host_id(self) -> str:
        return self.uniquename

    def to_short(self) -> ReferenceShort:
        return ReferenceShort(
            uniquename=self.uniquename,
            title=self.title,
            citation=self.citation,
            publication_year=self.publication_year,
            authors_abbrev=self.authors_abbrev,
            gene_count=self.gene_count,
            genotype_count=self.genotype_count,
        )


class ChromosomeDetails(BaseModel):
    name: str
    taxonid: int
    residues: str
    ena_identifier: Optional[str] = None
    gene_uniquenames: list[str] = Field(default_factory=list)
