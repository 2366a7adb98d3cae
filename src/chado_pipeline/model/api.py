"""Aggregate outputs: API maps, search summaries, subsets, stats and WebData."""

from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel, Field

from chado_pipeline.model.annotation import InteractionType, OntAnnotationDetail
from chado_pipeline.model.details import (
    ChromosomeDetails,
    GeneDetails,
    GenotypeDetails,
    ReferenceDetails,
    TermDetails,
)
from chado_pipeline.model.features import (
    ChromosomeLocation,
    DeletionViability,
    FeatureShort,
    TranscriptDetails,
)
from chado_pipeline.model.short import ChromosomeShort, ReferenceShort, TermShort

HOST_MAP_NAMES = ("genes", "genotypes", "terms", "references")


class Metadata(BaseModel):
    db_creation_datetime: Optional[str] = None
    export_prog_name: str
    export_prog_version: str
    gene_count: int
    term_count: int
    cv_versions: dict[str, str] = Field(default_factory=dict)


class GeneSummary(BaseModel):
    """Per-gene record for gene_summaries.json and the search index."""

    uniquename: str
    name: Optional[str] = None
    taxonid: int
    product: Optional[str] = None
    uniprot_identifier: Optional[str] = None
    synonyms: list[str] = Field(default_factory=list)
    feature_type: str
    location: Optional[ChromosomeLocation] = None


class APIGeneSummary(BaseModel):
    """Everything the query engine needs to know about a gene."""

    uniquename: str
    name: Optional[str] = None
    product: Optional[str] = None
    uniprot_identifier: Optional[str] = None
    exact_synonyms: list[str] = Field(default_factory=list)
    dbxrefs: list[str] = Field(default_factory=list)
    location: Optional[ChromosomeLocation] = None
    transcripts: list[TranscriptDetails] = Field(default_factory=list)
    tm_domain_count: int = 0
    exon_count: int = 0
    feature_type: str = "gene"


class APIAlleleDetails(BaseModel):
    gene: str
    allele_type: str
    expression: Optional[str] = None


class APIGenotypeAnnotation(BaseModel):
    is_multi: bool
    alleles: list[APIAlleleDetails] = Field(default_factory=list)


class GeneQueryData(BaseModel):
    gene_uniquename: str
    deletion_viability: DeletionViability = DeletionViability.UNKNOWN
    go_component: Optional[str] = None
    go_process_superslim: Optional[str] = None
    go_function: Optional[str] = None
    characterisation_status: Optional[str] = None
    tmm: Optional[str] = None
    ortholog_taxonids: list[int] = Field(default_factory=list)
    protein_length_bin: Optional[str] = None
    subset_termids: list[str] = Field(default_factory=list)


class APIInteractor(BaseModel):
    interaction_type: InteractionType
    interactor_uniquename: str


class TermSubsetElement(BaseModel):
    termid: str
    name: str
    gene_count: int = 0


class TermSubsetDetails(BaseModel):
    name: str
    total_gene_count: int = 0
    elements: list[TermSubsetElement] = Field(default_factory=list)


class GeneSubsetDetails(BaseModel):
    name: str
    display_name: Optional[str] = None
    elements: list[str] = Field(default_factory=list)


class SolrTermSummary(BaseModel):
    id: str
    cv_name: str
    name: str
    definition: Optional[str] = None
    close_synonyms: list[str] = Field(default_factory=list)
    close_synonym_words: str = ""
    distant_synonyms: list[str] = Field(default_factory=list)
    distant_synonym_words: str = ""
    interesting_parents: list[str] = Field(default_factory=list)
    annotation_count: int = 0
    gene_count: int = 0
    genotype_count: int = 0


class SolrReferenceSummary(BaseModel):
    id: str
    title: Optional[str] = None
    citation: Optional[str] = None
    authors: Optional[str] = None
    authors_abbrev: Optional[str] = None
    publication_year: Optional[str] = None
    pubmed_publication_date: Optional[str] = None
    approved_date: Optional[str] = None
    gene_count: int = 0
    genotype_count: int = 0


class RecentReferences(BaseModel):
    pubmed: list[ReferenceShort] = Field(default_factory=list)
    admin_curated: list[ReferenceShort] = Field(default_factory=list)
    community_curated: list[ReferenceShort] = Field(default_factory=list)


class Stats(BaseModel):
    gene_counts_by_taxonid: dict[int, int] = Field(default_factory=dict)
    community_pubs_count: int = 0
    non_community_pubs_count: int = 0


class APIMaps(BaseModel):
    """
    The full cross-linked index used to rehydrate the query service.

    Annotation details are stored once, in annotation_details; host pages
    refer to them by id.
    """

    termid_genes: dict[str, list[str]] = Field(default_factory=dict)
    termid_genotype_annotation: dict[str, list[APIGenotypeAnnotation]] = Field(default_factory=dict)
    gene_summaries: dict[str, APIGeneSummary] = Field(default_factory=dict)
    gene_query_data_map: dict[str, GeneQueryData] = Field(default_factory=dict)
    term_summaries: list[TermShort] = Field(default_factory=list)
    genes: dict[str, GeneDetails] = Field(default_factory=dict)
    gene_name_gene_map: dict[str, str] = Field(default_factory=dict)
    genotypes: dict[str, GenotypeDetails] = Field(default_factory=dict)
    terms: dict[str, TermDetails] = Field(default_factory=dict)
    interactors_of_genes: dict[str, list[APIInteractor]] = Field(default_factory=dict)
    references: dict[str, ReferenceDetails] = Field(default_factory=dict)
    other_features: dict[str, FeatureShort] = Field(default_factory=dict)
    annotation_details: dict[int, OntAnnotationDetail] = Field(default_factory=dict)
    chromosomes: dict[str, ChromosomeShort] = Field(default_factory=dict)
    term_subsets: dict[str, TermSubsetDetails] = Field(default_factory=dict)
    gene_subsets: dict[str, GeneSubsetDetails] = Field(default_factory=dict)

    def to_json_dict(self) -> dict:
        """Dump without the per-host copies of annotation details."""
        exclude = {
            name: {"__all__": {"annotations": {"annotation_details"}}}
            for name in HOST_MAP_NAMES
        }
        return self.model_dump(mode="json", exclude=exclude)

    @classmethod
    def from_json_dict(cls, data: dict) -> "APIMaps":
        """Validate and re-link every host block to the shared details."""
        maps = cls.model_validate(data)
        for name in HOST_MAP_NAMES:
            for host in getattr(maps, name).values():
                block = host.annotations
                block.annotation_details = {
                    detail_id: maps.annotation_details[detail_id]
                    for detail_id in block.detail_ids()
                    if detail_id in maps.annotation_details
                }
        return maps


@dataclass
class WebData:
    """Everything produced by one build, handed whole to the export writer."""

    metadata: Metadata
    genes: dict[str, GeneDetails]
    genotypes: dict[str, GenotypeDetails]
    terms: dict[str, TermDetails]
    references: dict[str, ReferenceDetails]
    chromosomes: dict[str, ChromosomeDetails]
    other_features: dict[str, FeatureShort]
    annotation_details: dict[int, OntAnnotationDetail]
    api_maps: APIMaps
    gene_summaries: list[GeneSummary] = field(default_factory=list)
    chromosome_summaries: list[ChromosomeShort] = field(default_factory=list)
    solr_term_summaries: list[SolrTermSummary] = field(default_factory=list)
    solr_reference_summaries: list[SolrReferenceSummary] = field(default_factory=list)
    recent_references: RecentReferences = field(default_factory=RecentReferences)
    all_community_curated: list[ReferenceShort] = field(default_factory=list)
    all_admin_curated: list[ReferenceShort] = field(default_factory=list)
    term_subsets: dict[str, TermSubsetDetails] = field(default_factory=dict)
    gene_subsets: dict[str, GeneSubsetDetails] = field(default_factory=dict)
    stats: Stats = field(default_factory=Stats)
