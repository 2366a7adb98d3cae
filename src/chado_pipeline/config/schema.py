"""Pydantic models for curation policy and pipeline configuration."""

import hashlib
import json
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from chado_pipeline.errors import ConfigError

# relations followed when propagating annotations from a term to its ancestors
DESCENDANT_REL_NAMES = [
    "is_a",
    "part_of",
    "regulates",
    "positively_regulates",
    "negatively_regulates",
    "has_part",
    "output_of",
]

# has_part is only followed for these CVs
HAS_PART_CV_NAMES = ["fission_yeast_phenotype"]

# feature_relationship type name -> rollup kind
FEATURE_REL_CONFIGS = {
    "interacts_physically": "interaction",
    "interacts_genetically": "interaction",
    "orthologous_to": "ortholog",
    "paralogous_to": "paralog",
}

GENE_NEIGHBOURHOOD_DISTANCE = 5

FASTA_SEQ_COLUMNS = 60

GENE_FEATURE_TYPES = ["gene", "pseudogene"]

TRANSCRIPT_FEATURE_TYPES = [
    "mRNA",
    "snRNA",
    "rRNA",
    "tRNA",
    "snoRNA",
    "ncRNA",
    "lncRNA",
    "pseudogenic_transcript",
]

TRANSCRIPT_PART_TYPES = ["exon", "five_prime_UTR", "three_prime_UTR"]

HANDLED_FEATURE_TYPES = (
    GENE_FEATURE_TYPES
    + TRANSCRIPT_FEATURE_TYPES
    + TRANSCRIPT_PART_TYPES
    + ["polypeptide", "allele", "genotype", "chromosome"]
)

DETAIL_SORT_FIELDS = ("gene", "genotype", "reference", "evidence", "assigned_by", "date")

SingleOrMultiAlleleConfig = Literal["single", "multi", "both"]


class ConfigOrganism(BaseModel):
    """An organism known to the database."""

    taxonid: int = Field(..., description="NCBI taxon id")
    genus: str = Field(..., description="Genus name")
    species: str = Field(..., description="Species name")

    def full_name(self) -> str:
        return f"{self.genus}_{self.species}"


class AncestorFilterCategory(BaseModel):
    display_name: str = Field(..., description="Category label in the UI")
    ancestors: list[str] = Field(
        default_factory=list,
        description="Category matches these terms and their descendants",
    )


class FilterConfig(BaseModel):
    filter_name: str
    display_name: str
    term_categories: list[AncestorFilterCategory] = Field(default_factory=list)
    extension_categories: list[AncestorFilterCategory] = Field(default_factory=list)


class SplitByParentsConfig(BaseModel):
    termids: list[str]
    display_name: str


class CvConfig(BaseModel):
    """Per-CV display and summary policy."""

    feature_type: str = Field(
        default="gene",
        description="Kind of feature annotated in this CV: gene or genotype",
    )
    filters: list[FilterConfig] = Field(default_factory=list)
    split_by_parents: list[SplitByParentsConfig] = Field(default_factory=list)
    summary_relations_to_hide: list[str] = Field(
        default_factory=list,
        description="Extension relations left out of summary rows",
    )
    summary_relation_ranges_to_collect: list[str] = Field(
        default_factory=list,
        description="Relations whose ranges are merged into one summary row",
    )
    sort_details_by: Optional[list[str]] = Field(
        default=None,
        description="Annotation detail fields used to order detail ids",
    )
    single_or_multi_allele: SingleOrMultiAlleleConfig = Field(
        default="both",
        description="Which genotypes contribute to gene page annotations",
    )

    @field_validator("sort_details_by")
    @classmethod
    def check_sort_fields(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        if v is not None:
            unknown = [name for name in v if name not in DETAIL_SORT_FIELDS]
            if unknown:
                raise ValueError(f"unknown sort_details_by fields: {unknown}")
        return v


class ExtensionDisplayNames(BaseModel):
    """Display text for an extension relation and its reciprocal."""

    rel_name: str = Field(..., description="Name of the extension relation")
    display_name: str = Field(..., description="Text to display")
    if_descendant_of: Optional[str] = Field(
        default=None,
        description="Only applies when the annotated term descends from this term",
    )
    reciprocal_display: Optional[str] = Field(
        default=None,
        description="Text for the 'target of' section, None to hide",
    )


class InterestingParent(BaseModel):
    termid: str
    rel_name: str


class RelationOrder(BaseModel):
    relation_order: list[str] = Field(default_factory=list)
    always_last: list[str] = Field(default_factory=list)


class EvidenceDetails(BaseModel):
    long: str = Field(..., description="Long form of the evidence code")
    link: Optional[str] = None


class ViabilityTerms(BaseModel):
    viable: str
    inviable: str


class TermAndName(BaseModel):
    termid: str
    name: str


class SlimConfig(BaseModel):
    """A curated collection of terms used to group genes."""

    slim_display_name: str
    cv_name: str
    terms: list[TermAndName] = Field(default_factory=list)


class InterProConfig(BaseModel):
    dbnames_to_filter: list[str] = Field(default_factory=list)


class ServerSubsetConfig(BaseModel):
    prefixes_to_remove: list[str] = Field(default_factory=list)


class ServerConfig(BaseModel):
    """Settings for the query service and its search collaborator."""

    subsets: ServerSubsetConfig = Field(default_factory=ServerSubsetConfig)
    solr_url: str = Field(
        default="http://localhost:8983/solr",
        description="Base URL of the search index",
    )
    close_synonym_boost: float = Field(default=0.6, ge=0.0)
    distant_synonym_boost: float = Field(default=0.3, ge=0.0)
    timeout_seconds: int = Field(default=10, ge=1)
    max_retries: int = Field(default=3, ge=1, le=20)


class ChromosomeConfig(BaseModel):
    """Names used for a chromosome in exported files."""

    export_file_id: str = Field(..., description="Used in file names, eg. chromosome_II")
    export_id: str = Field(..., description="Used inside files, eg. II")
    long_display_name: str
    short_display_name: str


class QueryDataConfig(BaseModel):
    go_components: list[str] = Field(default_factory=list)
    go_process_superslim: list[str] = Field(default_factory=list)
    go_function: list[str] = Field(default_factory=list)
    ortholog_presence_taxonids: list[int] = Field(default_factory=list)


class MacromolecularComplexesConfig(BaseModel):
    parent_complex_termid: str
    excluded_terms: list[str] = Field(default_factory=list)


class AnnotationSubsetConfig(BaseModel):
    """A TSV export of the annotations below some terms."""

    term_ids: list[str]
    file_name: str
    columns: list[str] = Field(
        default_factory=lambda: ["gene_uniquename", "gene_name", "termid", "term_name"],
        description="cv_name, termid, term_name, allele, gene_uniquename, gene_name",
    )
    single_or_multi_allele: SingleOrMultiAlleleConfig = "both"


class FileExportConfig(BaseModel):
    macromolecular_complexes: Optional[MacromolecularComplexesConfig] = None
    annotation_subsets: list[AnnotationSubsetConfig] = Field(default_factory=list)


class PipelineConfig(BaseModel):
    """Main pipeline configuration."""

    database_name: str = Field(
        ...,
        description="Name of the curation database, used as GFF source",
    )
    load_organism_taxonid: int = Field(
        ...,
        description="Taxon id of the organism whose genes are exported",
    )
    organisms: list[ConfigOrganism] = Field(..., min_length=1)
    api_seq_chunk_sizes: list[int] = Field(
        default_factory=lambda: [10_000, 200_000],
        description="Chunk sizes for chromosome sequence files",
    )
    extension_display_names: list[ExtensionDisplayNames] = Field(default_factory=list)
    extension_relation_order: RelationOrder = Field(default_factory=RelationOrder)
    evidence_types: dict[str, EvidenceDetails] = Field(default_factory=dict)
    cv_config: dict[str, CvConfig] = Field(default_factory=dict)
    interesting_parents: list[InterestingParent] = Field(
        default_factory=list,
        description="Ancestors stored in TermShort when reachable via rel_name",
    )
    viability_terms: Optional[ViabilityTerms] = None
    go_slim_terms: list[TermAndName] = Field(default_factory=list)
    slims: dict[str, SlimConfig] = Field(default_factory=dict)
    interpro: InterProConfig = Field(default_factory=InterProConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    extra_database_aliases: dict[str, str] = Field(default_factory=dict)
    chromosomes: dict[str, ChromosomeConfig] = Field(default_factory=dict)
    query_data_config: QueryDataConfig = Field(default_factory=QueryDataConfig)
    file_exports: FileExportConfig = Field(default_factory=FileExportConfig)
    descendant_rel_names: list[str] = Field(
        default_factory=lambda: list(DESCENDANT_REL_NAMES),
        description="Relations followed when propagating to ancestors",
    )
    has_part_cv_names: list[str] = Field(
        default_factory=lambda: list(HAS_PART_CV_NAMES),
        description="CVs where has_part is followed",
    )

    @field_validator("api_seq_chunk_sizes")
    @classmethod
    def check_chunk_sizes(cls, v: list[int]) -> list[int]:
        if any(size <= 0 for size in v):
            raise ValueError("api_seq_chunk_sizes must be positive")
        return sorted(set(v))

    def cv_config_by_name(self, cv_name: str) -> CvConfig:
        """
        Return the CV configuration, falling back to a default record.

        Minor CVs are expected to be missing from the configuration, so the
        feature type is inferred from the name: "extension:...:gene" CVs
        annotate genes, other "extension:" CVs annotate genotypes and
        everything else annotates genes.
        """
        if cv_name in self.cv_config:
            return self.cv_config[cv_name]
        if cv_name.startswith("extension:") and not cv_name.endswith(":gene"):
            return CvConfig(feature_type="genotype")
        return CvConfig(feature_type="gene")

    def all_slims(self) -> dict[str, SlimConfig]:
        """Configured slims, with go_slim_terms included as "go_slim"."""
        slims = dict(self.slims)
        if self.go_slim_terms and "go_slim" not in slims:
            slims["go_slim"] = SlimConfig(
                slim_display_name="GO slim",
                cv_name="biological_process",
                terms=self.go_slim_terms,
            )
        return slims

    def load_organism(self) -> ConfigOrganism:
        organism = self.organism_by_taxonid(self.load_organism_taxonid)
        if organism is None:
            raise ConfigError(
                f"can't find configuration for load_organism_taxonid: "
                f"{self.load_organism_taxonid}"
            )
        return organism

    def organism_by_taxonid(self, taxonid: int) -> Optional[ConfigOrganism]:
        for organism in self.organisms:
            if organism.taxonid == taxonid:
                return organism
        return None

    def find_chromosome_config(self, chromosome_name: str) -> ChromosomeConfig:
        try:
            return self.chromosomes[chromosome_name]
        except KeyError:
            raise ConfigError(
                f"can't find chromosome configuration for {chromosome_name}"
            ) from None

    def config_hash(self) -> str:
        """
        Compute SHA-256 hash of the configuration.

        Returns a deterministic hash based on all config values,
        recorded in build provenance.
        """
        config_json = json.dumps(
            self.model_dump(mode="json"),
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(config_json.encode()).hexdigest()
