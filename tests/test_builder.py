"""Tests for the denormalization builder."""

import dataclasses

import pytest

from chado_pipeline.build import build_web_data, gene_feature_type, make_summary
from chado_pipeline.config.schema import CvConfig
from chado_pipeline.errors import BuildError
from chado_pipeline.export.files import to_json
from chado_pipeline.model import (
    AnnotationHost,
    DeletionViability,
    ExtPart,
    FeatureType,
    GeneExtRange,
    GeneShort,
    MiscExtRange,
    OntAnnotationDetail,
    SummaryGenesExtRange,
    host_annotation_key,
)
from chado_pipeline.raw import (
    RawAnnotation,
    RawExtensionPart,
    RawFeature,
    RawFeatureRelationship,
    RawTermRelationship,
)

from conftest import make_raw


def _groups(block, cv_name):
    return {(g.term, g.is_not): g for g in block.cv_annotations[cv_name]}


# ============================================================================
# Structure and cross-linking
# ============================================================================


def test_genes_of_unconfigured_organisms_are_skipped(web_data):
    assert set(web_data.genes) == {"SPAC1.01", "SPAC1.02", "SPAC1.03", "HUMAN1"}


def test_excluded_gene_is_explicit_none_in_lookup_map(web_data):
    """A with/from gene of an unconfigured organism maps to None, not a missing key."""
    block = web_data.genes["SPAC1.03"].annotations

    assert "ECOLI1" in block.genes_by_uniquename
    assert block.genes_by_uniquename["ECOLI1"] is None


def test_every_referenced_entity_has_a_lookup_entry(web_data):
    for host in list(web_data.genes.values()) + list(web_data.terms.values()):
        block = host.annotations
        for detail in block.annotation_details.values():
            for gene in detail.genes:
                assert gene in block.genes_by_uniquename
            if detail.reference:
                assert detail.reference in block.references_by_uniquename
            if detail.genotype:
                assert detail.genotype in block.genotypes_by_uniquename
            for condition in detail.conditions:
                assert condition in block.terms_by_termid


def test_every_page_is_an_annotation_host(web_data):
    hosts = [
        web_data.genes["SPAC1.01"],
        web_data.genotypes["genotype-1"],
        web_data.terms["GO:0000001"],
        web_data.references["PMID:1"],
    ]

    assert all(isinstance(host, AnnotationHost) for host in hosts)
    assert [host_annotation_key(host) for host in hosts] == [
        ("gene", "SPAC1.01"),
        ("genotype", "genotype-1"),
        ("term", "GO:0000001"),
        ("reference", "PMID:1"),
    ]


def test_transcript_parts_and_introns(web_data):
    transcript = web_data.genes["SPAC1.01"].transcripts[0]

    assert [p.feature_type for p in transcript.parts] == [
        FeatureType.EXON.value,
        FeatureType.CDS_INTRON.value,
        FeatureType.EXON.value,
    ]
    intron = transcript.parts[1]
    assert intron.uniquename == "SPAC1.01.1:intron:1"
    assert (intron.location.start_pos, intron.location.end_pos) == (31, 40)
    assert transcript.protein.length == 6


def test_gene_feature_type(web_data):
    assert gene_feature_type(web_data.genes["SPAC1.01"]) == "mRNA gene"
    assert gene_feature_type(web_data.genes["SPAC1.03"]) == "ncRNA gene"
    assert gene_feature_type(web_data.genes["HUMAN1"]) == "gene"


def test_chromosome_genes_in_position_order(web_data):
    chromosome = web_data.chromosomes["chromosome_1"]

    assert chromosome.gene_uniquenames == ["SPAC1.01", "SPAC1.02", "SPAC1.03"]
    assert chromosome.ena_identifier == "CU329670"
    assert [g.uniquename for g in web_data.genes["SPAC1.02"].gene_neighbourhood] == [
        "SPAC1.01",
        "SPAC1.02",
        "SPAC1.03",
    ]


def test_located_features_without_page(web_data):
    assert list(web_data.other_features) == ["SPAC1.LTR1"]
    assert web_data.other_features["SPAC1.LTR1"].residues == "GTACGT"


# ============================================================================
# Annotation grouping and propagation
# ============================================================================


def test_annotations_propagate_to_ancestors(web_data):
    api_maps = web_data.api_maps

    assert api_maps.termid_genes["GO:0000001"] == ["SPAC1.01", "SPAC1.02"]
    assert api_maps.termid_genes["GO:0000002"] == ["SPAC1.01", "SPAC1.02"]
    assert api_maps.termid_genes["GO:0000003"] == ["SPAC1.01"]


def test_ancestor_page_groups_by_annotated_term(web_data):
    groups = _groups(web_data.terms["GO:0000001"].annotations, "biological_process")

    assert set(groups) == {("GO:0000002", False), ("GO:0000003", False)}
    assert groups[("GO:0000002", False)].annotations == [2, 3]
    assert groups[("GO:0000002", False)].rel_names == ["is_a"]


def test_not_annotations_are_segregated_and_not_propagated(web_data):
    groups = _groups(web_data.terms["GO:0000003"].annotations, "biological_process")

    assert groups[("GO:0000003", True)].annotations == [5]
    assert groups[("GO:0000003", True)].summary is None
    assert "SPAC1.03" not in web_data.terms["GO:0000001"].genes_annotated_with
    parent_groups = _groups(web_data.terms["GO:0000001"].annotations, "biological_process")
    assert all(not is_not for _, is_not in parent_groups)


def test_summary_rows_collapse_identical_extensions(web_data):
    groups = _groups(web_data.genes["SPAC1.02"].annotations, "biological_process")
    summary = groups[("GO:0000002", False)].summary

    assert len(summary) == 1
    assert summary[0].gene_uniquenames == []
    assert summary[0].extension[0].rel_type_display_name == "occurs in"

    term_summary = _groups(web_data.terms["GO:0000002"].annotations, "biological_process")
    assert term_summary[("GO:0000002", False)].summary[0].gene_uniquenames == ["SPAC1.02"]


def test_single_allele_cv_hides_multi_allele_genotypes_from_gene_pages(web_data):
    spac102 = web_data.genes["SPAC1.02"].annotations.cv_annotations["fission_yeast_phenotype"]
    assert [g.term for g in spac102] == ["FYPO:0000002"]

    assert "fission_yeast_phenotype" not in web_data.genes["SPAC1.01"].annotations.cv_annotations
    genotype_annotations = web_data.api_maps.termid_genotype_annotation["FYPO:0000003"]
    assert genotype_annotations[0].is_multi


def test_reference_counts(web_data):
    assert web_data.references["PMID:1"].gene_count == 2
    assert web_data.references["PMID:2"].genotype_count == 2


# ============================================================================
# Rollups
# ============================================================================


def test_target_of_uses_reciprocal_display_name(web_data):
    target_of = web_data.genes["SPAC1.02"].target_of_annotations

    assert len(target_of) == 1
    assert target_of[0].ext_rel_display_name == "substrate of"
    assert target_of[0].genes == ["SPAC1.01"]


def test_interactions_and_orthologs(web_data):
    assert len(web_data.genes["SPAC1.01"].physical_interactions) == 1
    assert len(web_data.genes["SPAC1.02"].physical_interactions) == 1
    assert len(web_data.references["PMID:1"].physical_interactions) == 1
    interactors = web_data.api_maps.interactors_of_genes["SPAC1.02"]
    assert [i.interactor_uniquename for i in interactors] == ["SPAC1.01"]

    reciprocal = web_data.genes["HUMAN1"].ortholog_annotations
    assert reciprocal[0].ortholog_uniquename == "SPAC1.01"
    assert reciprocal[0].ortholog_taxonid == 4896


def test_deletion_viability(web_data):
    assert web_data.genes["SPAC1.02"].deletion_viability == DeletionViability.INVIABLE
    assert web_data.genes["SPAC1.01"].deletion_viability == DeletionViability.UNKNOWN


def test_subsets_and_slims(web_data):
    assert set(web_data.term_subsets) == {"go_slim", "goslim_pombe"}
    assert web_data.term_subsets["go_slim"].total_gene_count == 2
    assert "go_slim" in web_data.terms["GO:0000003"].in_subsets
    assert web_data.genes["SPAC1.01"].subset_termids == ["GO:0000002"]

    gene_subsets = web_data.gene_subsets
    assert gene_subsets["feature_type:mRNA gene"].elements == ["SPAC1.01", "SPAC1.02"]
    assert gene_subsets["deletion_viability:inviable"].elements == ["SPAC1.02"]
    assert all("HUMAN1" not in subset.elements for subset in gene_subsets.values())


def test_gene_query_data(web_data):
    query_data = web_data.api_maps.gene_query_data_map

    assert query_data["SPAC1.01"].go_process_superslim == "GO:0000001"
    assert query_data["SPAC1.01"].go_function == "GO:0000010"
    assert query_data["SPAC1.01"].ortholog_taxonids == [9606]
    assert query_data["SPAC1.01"].tmm == "no"
    assert query_data["SPAC1.01"].protein_length_bin == "0-100"
    assert query_data["SPAC1.02"].protein_length_bin == "101-500"
    assert query_data["SPAC1.03"].tmm is None


def test_metadata_and_references(web_data):
    assert web_data.metadata.db_creation_datetime == "2024-01-01 00:00:00"
    assert web_data.metadata.cv_versions == {"biological_process": "2024-01-01"}
    assert [r.uniquename for r in web_data.recent_references.community_curated] == ["PMID:1"]
    assert [r.uniquename for r in web_data.recent_references.admin_curated] == ["PMID:2"]
    assert [r.uniquename for r in web_data.recent_references.pubmed] == ["PMID:2", "PMID:1"]
    assert web_data.references["PMID:1"].authors_abbrev == "Smith J et al."


def test_solr_summaries_skip_obsolete_terms(web_data):
    ids = {s.id for s in web_data.solr_term_summaries}

    assert "GO:0000009" not in ids
    child = next(s for s in web_data.solr_term_summaries if s.id == "GO:0000002")
    assert child.close_synonym_words == "kid process"
    assert child.interesting_parents == ["GO:0000001"]


# ============================================================================
# Determinism and failures
# ============================================================================


def test_rebuild_is_byte_identical(config):
    first = build_web_data(make_raw(), config)
    second = build_web_data(make_raw(), config)

    assert to_json(first.api_maps.to_json_dict()) == to_json(second.api_maps.to_json_dict())


def test_annotation_to_missing_term(raw, config):
    raw.annotations.append(RawAnnotation(99, "SPAC1.01", "GO:9999999"))

    with pytest.raises(BuildError, match="missing term GO:9999999"):
        build_web_data(raw, config)


def test_annotation_to_missing_reference(raw, config):
    raw.annotations.append(RawAnnotation(99, "SPAC1.01", "GO:0000001", reference="PMID:404"))

    with pytest.raises(BuildError, match="PMID:404"):
        build_web_data(raw, config)


def test_duplicate_annotation_id(raw, config):
    raw.annotations.append(dataclasses.replace(raw.annotations[0]))

    with pytest.raises(BuildError, match="duplicate annotation id"):
        build_web_data(raw, config)


def test_allele_needs_exactly_one_gene(raw, config):
    raw.features.append(RawFeature("orphan-allele", "allele", 4896))

    with pytest.raises(BuildError, match="exactly one gene"):
        build_web_data(raw, config)


def test_genotype_without_alleles(raw, config):
    raw.features.append(RawFeature("genotype-empty", "genotype", 4896))

    with pytest.raises(BuildError, match="no alleles"):
        build_web_data(raw, config)


def test_relationship_to_missing_feature(raw, config):
    raw.feature_relationships.append(RawFeatureRelationship("SPAC1.01", "SPAC9.99", "paralogous_to"))

    with pytest.raises(BuildError, match="SPAC9.99"):
        build_web_data(raw, config)


def test_ontology_cycle_does_not_hang(raw, config):
    raw.term_relationships.append(RawTermRelationship("GO:0000001", "GO:0000003", "is_a"))

    web_data = build_web_data(raw, config)

    assert "SPAC1.02" in web_data.api_maps.termid_genes["GO:0000003"]


# ============================================================================
# Summary collapsing
# ============================================================================


def _sort_parts(parts):
    return sorted(parts, key=lambda part: part.key())


def _substrate(gene):
    return ExtPart(
        rel_type_name="has_substrate",
        rel_type_display_name="has substrate",
        ext_range=GeneExtRange(value=gene),
    )


def test_collected_ranges_merge_into_one_row():
    details = [
        OntAnnotationDetail(id=1, genes=["G1"], extension=[_substrate("A")]),
        OntAnnotationDetail(id=2, genes=["G1"], extension=[_substrate("B")]),
    ]
    cv_config = CvConfig(summary_relation_ranges_to_collect=["has_substrate"])

    rows = make_summary(details, cv_config, "gene", _sort_parts)

    assert len(rows) == 1
    ext_range = rows[0].extension[0].ext_range
    assert isinstance(ext_range, SummaryGenesExtRange)
    assert ext_range.value == [["A"], ["B"]]


def test_extensionless_row_dropped_when_extended_row_exists():
    in_nucleus = ExtPart(
        rel_type_name="occurs_in",
        rel_type_display_name="occurs in",
        ext_range=MiscExtRange(value="nucleus"),
    )
    details = [
        OntAnnotationDetail(id=1, genes=["G1"]),
        OntAnnotationDetail(id=2, genes=["G1"], extension=[in_nucleus]),
    ]

    rows = make_summary(details, CvConfig(), "term", _sort_parts)

    assert len(rows) == 1
    assert rows[0].gene_uniquenames == ["G1"]
    assert rows[0].extension == [in_nucleus]


def test_hidden_relations_left_out_of_summary():
    details = [OntAnnotationDetail(id=1, genes=["G1"], extension=[_substrate("A")])]
    cv_config = CvConfig(summary_relations_to_hide=["has_substrate"])

    rows = make_summary(details, cv_config, "term", _sort_parts)

    assert rows[0].extension == []


def test_gene_short_orders_named_genes_first():
    genes = [
        GeneShort(uniquename="C"),
        GeneShort(uniquename="B", name="abc1"),
        GeneShort(uniquename="A", name="ZZZ1"),
        GeneShort(uniquename="D", name=""),
    ]

    ordered = sorted(genes, key=lambda gene: gene.sort_key())

    # names compare case-sensitively, so "ZZZ1" sorts before "abc1"
    assert [gene.uniquename for gene in ordered] == ["A", "B", "C", "D"]


def test_summary_genes_follow_gene_order():
    details = [OntAnnotationDetail(id=1, genes=["G1", "G2", "G3"])]
    names = {"G1": "bbb1", "G2": "aaa1"}

    def gene_order(uniquename):
        return GeneShort(uniquename=uniquename, name=names.get(uniquename)).sort_key()

    rows = make_summary(details, CvConfig(), "term", _sort_parts, gene_order)

    assert rows[0].gene_uniquenames == ["G2", "G1", "G3"]


def test_term_page_summary_lists_genes_by_name(raw, config):
    raw.features = [
        dataclasses.replace(feature, name="zzz1") if feature.uniquename == "SPAC1.01" else feature
        for feature in raw.features
    ]
    raw.annotations.append(
        RawAnnotation(9, "SPAC1.01", "GO:0000002", reference="PMID:1", evidence="IDA")
    )
    raw.extension_parts.append(RawExtensionPart(9, 0, "occurs_in", "misc", "nucleus"))

    web_data = build_web_data(raw, config)

    groups = _groups(web_data.terms["GO:0000002"].annotations, "biological_process")
    summary = groups[("GO:0000002", False)].summary
    assert summary[0].gene_uniquenames == ["SPAC1.02", "SPAC1.01"]
