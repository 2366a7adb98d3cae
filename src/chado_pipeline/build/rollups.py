"""Aggregate outputs assembled once every entity page is complete."""

import re
from collections import Counter
from typing import TYPE_CHECKING, Optional

import structlog

from chado_pipeline import __version__
from chado_pipeline.model import (
    APIGeneSummary,
    APIMaps,
    ChromosomeShort,
    GeneDetails,
    GeneQueryData,
    GeneSummary,
    Metadata,
    RecentReferences,
    ReferenceDetails,
    SolrReferenceSummary,
    SolrTermSummary,
    Stats,
    WebData,
)

if TYPE_CHECKING:
    from chado_pipeline.build.builder import WebDataBuilder

logger = structlog.get_logger()

EXPORT_PROG_NAME = "chado-pipeline"

RECENT_REFERENCE_COUNT = 20

# upper bounds (inclusive) of the protein length bins
PROTEIN_LENGTH_BINS = [(100, "0-100"), (500, "101-500"), (1000, "501-1000")]
PROTEIN_LENGTH_LAST_BIN = "1001+"

CLOSE_SYNONYM_TYPES = ("exact", "narrow")


def protein_length_bin(length: Optional[int]) -> Optional[str]:
    if length is None:
        return None
    for upper, name in PROTEIN_LENGTH_BINS:
        if length <= upper:
            return name
    return PROTEIN_LENGTH_LAST_BIN


def _synonym_words(synonyms: list[str]) -> str:
    words = set()
    for synonym in synonyms:
        words.update(w for w in re.split(r"\W+", synonym.lower()) if w)
    return " ".join(sorted(words))


def make_metadata(builder: "WebDataBuilder") -> Metadata:
    db_creation_datetime = None
    cv_versions = {}
    for prop in builder.raw.chadoprops:
        if prop.prop_type == "db_creation_datetime":
            db_creation_datetime = prop.value
        elif prop.prop_type.startswith("cv_version:"):
            cv_versions[prop.prop_type.split(":", 1)[1]] = prop.value
    return Metadata(
        db_creation_datetime=db_creation_datetime,
        export_prog_name=EXPORT_PROG_NAME,
        export_prog_version=__version__,
        gene_count=len(builder.genes),
        term_count=len(builder.terms),
        cv_versions=dict(sorted(cv_versions.items())),
    )


def make_gene_summary(gene: GeneDetails) -> GeneSummary:
    return GeneSummary(
        uniquename=gene.uniquename,
        name=gene.name,
        taxonid=gene.taxonid,
        product=gene.product,
        uniprot_identifier=gene.uniprot_identifier,
        synonyms=[s.name for s in gene.synonyms],
        feature_type=gene.feature_type,
        location=gene.location,
    )


def make_api_gene_summary(gene: GeneDetails) -> APIGeneSummary:
    exon_count = len(gene.transcripts[0].exons()) if gene.transcripts else 0
    return APIGeneSummary(
        uniquename=gene.uniquename,
        name=gene.name,
        product=gene.product,
        uniprot_identifier=gene.uniprot_identifier,
        exact_synonyms=[s.name for s in gene.synonyms if s.synonym_type == "exact"],
        dbxrefs=gene.dbxrefs,
        location=gene.location,
        transcripts=gene.transcripts,
        tm_domain_count=len(gene.tm_domain_coords),
        exon_count=exon_count,
        feature_type=gene.feature_type,
    )


def make_gene_query_data(builder: "WebDataBuilder", gene: GeneDetails) -> GeneQueryData:
    query_config = builder.config.query_data_config
    closure = builder.gene_term_closure.get(gene.uniquename, set())

    def first_in_closure(termids: list[str]) -> Optional[str]:
        for termid in termids:
            if termid in closure:
                return termid
        return None

    protein = gene.first_protein()
    tmm = None
    if protein is not None:
        tmm = "yes" if gene.tm_domain_coords else "no"

    ortholog_taxonids = {o.ortholog_taxonid for o in gene.ortholog_annotations}
    if query_config.ortholog_presence_taxonids:
        ortholog_taxonids &= set(query_config.ortholog_presence_taxonids)

    return GeneQueryData(
        gene_uniquename=gene.uniquename,
        deletion_viability=gene.deletion_viability,
        go_component=first_in_closure(query_config.go_components),
        go_process_superslim=first_in_closure(query_config.go_process_superslim),
        go_function=first_in_closure(query_config.go_function),
        characterisation_status=gene.characterisation_status,
        tmm=tmm,
        ortholog_taxonids=sorted(ortholog_taxonids),
        protein_length_bin=protein_length_bin(protein.length if protein else None),
        subset_termids=gene.subset_termids,
    )


def make_solr_term_summaries(builder: "WebDataBuilder") -> list[SolrTermSummary]:
    summaries = []
    for termid, term in builder.terms.items():
        if term.is_obsolete:
            continue
        close = sorted(s.name for s in term.synonyms if s.synonym_type in CLOSE_SYNONYM_TYPES)
        distant = sorted(s.name for s in term.synonyms if s.synonym_type not in CLOSE_SYNONYM_TYPES)
        summaries.append(
            SolrTermSummary(
                id=termid,
                cv_name=term.cv_name,
                name=term.name,
                definition=term.definition,
                close_synonyms=close,
                close_synonym_words=_synonym_words(close),
                distant_synonyms=distant,
                distant_synonym_words=_synonym_words(distant),
                interesting_parents=term.interesting_parents,
                annotation_count=len(term.annotations.annotation_details),
                gene_count=term.gene_count,
                genotype_count=term.genotype_count,
            )
        )
    return summaries


def make_solr_reference_summaries(builder: "WebDataBuilder") -> list[SolrReferenceSummary]:
    return [
        SolrReferenceSummary(
            id=uniquename,
            title=ref.title,
            citation=ref.citation,
            authors=ref.authors,
            authors_abbrev=ref.authors_abbrev,
            publication_year=ref.publication_year,
            pubmed_publication_date=ref.pubmed_publication_date,
            approved_date=ref.approved_date,
            gene_count=ref.gene_count,
            genotype_count=ref.genotype_count,
        )
        for uniquename, ref in builder.references.items()
    ]


def _by_date_desc(references: list[ReferenceDetails], date_attr: str) -> list[ReferenceDetails]:
    dated = [ref for ref in references if getattr(ref, date_attr)]
    # newest first, ties by uniquename
    dated.sort(key=lambda ref: ref.uniquename)
    dated.sort(key=lambda ref: getattr(ref, date_attr), reverse=True)
    return dated


def make_recent_references(builder: "WebDataBuilder"):
    references = list(builder.references.values())
    community = [
        ref for ref in references
        if ref.canto_curator_role == "community" and ref.canto_approved_date
    ]
    admin = [
        ref for ref in references
        if ref.canto_curator_role and ref.canto_curator_role != "community" and ref.canto_approved_date
    ]
    all_community = _by_date_desc(community, "canto_approved_date")
    all_admin = _by_date_desc(admin, "canto_approved_date")
    pubmed = _by_date_desc(references, "pubmed_publication_date")

    recent = RecentReferences(
        pubmed=[ref.to_short() for ref in pubmed[:RECENT_REFERENCE_COUNT]],
        admin_curated=[ref.to_short() for ref in all_admin[:RECENT_REFERENCE_COUNT]],
        community_curated=[ref.to_short() for ref in all_community[:RECENT_REFERENCE_COUNT]],
    )
    return (
        recent,
        [ref.to_short() for ref in all_community],
        [ref.to_short() for ref in all_admin],
    )


def make_stats(builder: "WebDataBuilder") -> Stats:
    gene_counts = Counter(gene.taxonid for gene in builder.genes.values())
    community = 0
    non_community = 0
    for ref in builder.references.values():
        if not ref.canto_approved_date:
            continue
        if ref.canto_curator_role == "community":
            community += 1
        else:
            non_community += 1
    return Stats(
        gene_counts_by_taxonid=dict(sorted(gene_counts.items())),
        community_pubs_count=community,
        non_community_pubs_count=non_community,
    )


def make_chromosome_summaries(builder: "WebDataBuilder") -> dict[str, ChromosomeShort]:
    summaries = {}
    for name, chromosome in builder.chromosomes.items():
        genes = [builder.genes[u] for u in chromosome.gene_uniquenames]
        summaries[name] = ChromosomeShort(
            name=name,
            length=len(chromosome.residues),
            ena_identifier=chromosome.ena_identifier,
            gene_count=len(genes),
            coding_gene_count=sum(1 for g in genes if g.first_protein() is not None),
        )
    return summaries


def assemble_web_data(builder: "WebDataBuilder") -> WebData:
    load_taxonid = builder.load_organism.taxonid
    genes = builder.genes

    chromosome_summaries = make_chromosome_summaries(builder)

    gene_name_gene_map = {}
    for uniquename, gene in genes.items():
        if gene.name and gene.taxonid == load_taxonid:
            gene_name_gene_map[gene.name] = uniquename

    interactors = {}
    for uniquename in sorted(builder.interactors):
        by_key = {
            (i.interaction_type.value, i.interactor_uniquename): i
            for i in builder.interactors[uniquename]
        }
        interactors[uniquename] = [by_key[k] for k in sorted(by_key)]

    api_maps = APIMaps(
        termid_genes={
            termid: term.genes_annotated_with
            for termid, term in builder.terms.items()
            if term.genes_annotated_with
        },
        termid_genotype_annotation={
            termid: [annotations[g] for g in sorted(annotations)]
            for termid, annotations in sorted(builder.termid_genotype_annotation.items())
        },
        gene_summaries={u: make_api_gene_summary(g) for u, g in genes.items()},
        gene_query_data_map={u: make_gene_query_data(builder, g) for u, g in genes.items()},
        term_summaries=sorted(builder.term_shorts.values(), key=lambda t: t.sort_key()),
        genes=genes,
        gene_name_gene_map=dict(sorted(gene_name_gene_map.items())),
        genotypes=builder.genotypes,
        terms=builder.terms,
        interactors_of_genes=interactors,
        references=builder.references,
        other_features=builder.other_features,
        annotation_details=dict(sorted(builder.details.items())),
        chromosomes=chromosome_summaries,
        term_subsets=builder.term_subsets,
        gene_subsets=builder.gene_subsets,
    )

    recent, all_community, all_admin = make_recent_references(builder)

    return WebData(
        metadata=make_metadata(builder),
        genes=genes,
        genotypes=builder.genotypes,
        terms=builder.terms,
        references=builder.references,
        chromosomes=builder.chromosomes,
        other_features=builder.other_features,
        annotation_details=api_maps.annotation_details,
        api_maps=api_maps,
        gene_summaries=[
            make_gene_summary(g) for g in genes.values() if g.taxonid == load_taxonid
        ],
        chromosome_summaries=list(chromosome_summaries.values()),
        solr_term_summaries=make_solr_term_summaries(builder),
        solr_reference_summaries=make_solr_reference_summaries(builder),
        recent_references=recent,
        all_community_curated=all_community,
        all_admin_curated=all_admin,
        term_subsets=builder.term_subsets,
        gene_subsets=builder.gene_subsets,
        stats=make_stats(builder),
    )
