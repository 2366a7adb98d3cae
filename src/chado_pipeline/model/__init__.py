"""Denormalized data model produced by the build and served by the query service."""

from chado_pipeline.model.annotation import (
    AnnotationBlock,
    AnnotationHost,
    InteractionAnnotation,
    InteractionType,
    OntAnnotationDetail,
    OntTermAnnotations,
    OrthologAnnotation,
    ParalogAnnotation,
    TargetOfAnnotation,
    TermAndRelation,
    TermSummaryRow,
    WithFromValue,
    host_annotation_key,
)
from chado_pipeline.model.api import (
    APIAlleleDetails,
    APIGeneSummary,
    APIGenotypeAnnotation,
    APIInteractor,
    APIMaps,
    GeneQueryData,
    GeneSubsetDetails,
    GeneSummary,
    Metadata,
    RecentReferences,
    SolrReferenceSummary,
    SolrTermSummary,
    Stats,
    TermSubsetDetails,
    TermSubsetElement,
    WebData,
)
from chado_pipeline.model.details import (
    ChromosomeDetails,
    GeneDetails,
    GenotypeDetails,
    ReferenceDetails,
    TermDetails,
)
from chado_pipeline.model.extension import (
    DomainExtRange,
    ExtPart,
    ExtRange,
    GeneExtRange,
    GeneProductExtRange,
    MiscExtRange,
    PromoterGeneExtRange,
    SummaryGenesExtRange,
    SummaryResiduesExtRange,
    SummaryTermsExtRange,
    TermExtRange,
)
from chado_pipeline.model.features import (
    ChromosomeLocation,
    DeletionViability,
    FeatureShort,
    FeatureType,
    GeneDomainData,
    InterProMatch,
    ProteinDetails,
    RfamAnnotation,
    Strand,
    SynonymDetails,
    TmDomainCoord,
    TranscriptDetails,
)
from chado_pipeline.model.short import (
    AlleleShort,
    ChromosomeShort,
    ExpressedAllele,
    GeneShort,
    GenotypeShort,
    ReferenceShort,
    TermShort,
)
