"""Tests for the boolean gene query engine."""

import pytest

from chado_pipeline.build import build_web_data
from chado_pipeline.errors import QueryError
from chado_pipeline.query import (
    AndNode,
    FloatRangeNode,
    FloatRangeType,
    GeneIndex,
    GeneListNode,
    IntRangeNode,
    IntRangeType,
    NotNode,
    OrNode,
    Query,
    SingleOrMultiAllele,
    SubsetNode,
    TermNode,
)
from chado_pipeline.query.index import QueryExpressionFilter
from chado_pipeline.raw import (
    RawAnnotation,
    RawFeature,
    RawFeatureLoc,
    RawFeatureRelationship,
    RawTerm,
    RawTermRelationship,
)

from conftest import POMBE

P, C, GC = "GO:0000001", "GO:0000002", "GO:0000003"


# ============================================================================
# Term and subset leaves
# ============================================================================


def test_term_results_include_descendant_annotations(index):
    p_genes = set(TermNode(termid=P).exec(index))
    c_genes = set(TermNode(termid=C).exec(index))
    gc_genes = set(TermNode(termid=GC).exec(index))

    assert gc_genes <= c_genes <= p_genes
    assert p_genes == {"SPAC1.01", "SPAC1.02"}


def test_deep_annotation_reaches_every_ancestor(raw, config):
    # P <- C <- GC <- GGC, with a single gene annotated to GGC only
    ggc = "GO:0000004"
    raw.terms.append(RawTerm(ggc, "great-grandchild process", "biological_process"))
    raw.term_relationships.append(RawTermRelationship(ggc, GC, "is_a"))
    raw.annotations = [
        annotation for annotation in raw.annotations
        if annotation.termid not in (P, C, GC)
    ]
    raw.annotations.append(RawAnnotation(9, "SPAC1.01", ggc, reference="PMID:1", evidence="IDA"))
    web_data = build_web_data(raw, config)
    index = GeneIndex(web_data.api_maps, config.server.subsets.prefixes_to_remove)

    for termid in (P, C, GC, ggc):
        assert TermNode(termid=termid).exec(index) == ["SPAC1.01"]


def test_unknown_term_gives_no_genes(index):
    assert TermNode(termid="GO:7777777").exec(index) == []


def test_genotype_filters(index):
    multi = TermNode(termid="FYPO:0000003", single_or_multi_allele=SingleOrMultiAllele.MULTI)
    single = TermNode(termid="FYPO:0000003", single_or_multi_allele=SingleOrMultiAllele.SINGLE)
    overexpressed = TermNode(termid="FYPO:0000003", expression=QueryExpressionFilter.WT_OVEREXPRESSED)
    null = TermNode(termid="FYPO:0000002", expression=QueryExpressionFilter.NULL)

    assert multi.exec(index) == ["SPAC1.01", "SPAC1.02"]
    assert single.exec(index) == []
    assert overexpressed.exec(index) == ["SPAC1.02"]
    assert null.exec(index) == ["SPAC1.02"]


def test_subset_by_full_name_and_stripped_alias(index):
    assert SubsetNode(subset_name="feature_type:mRNA gene").exec(index) == ["SPAC1.01", "SPAC1.02"]
    assert SubsetNode(subset_name="mRNA gene").exec(index) == ["SPAC1.01", "SPAC1.02"]


def test_nonexistent_subset_is_empty(index):
    assert SubsetNode(subset_name="no_such_subset").exec(index) == []


def test_gene_list_removes_duplicates(index):
    assert GeneListNode(ids=["SPAC1.02", "SPAC1.01", "SPAC1.02"]).exec(index) == ["SPAC1.02", "SPAC1.01"]


# ============================================================================
# Range leaves
# ============================================================================


def test_exon_count_range(index):
    node = IntRangeNode(range_type=IntRangeType.EXON_COUNT, start=2)

    assert node.exec(index) == ["SPAC1.01"]


def _add_gene(raw, uniquename, exons, strand=1):
    transcript = f"{uniquename}.1"
    start, end = exons[0][0], exons[-1][1]
    raw.features += [
        RawFeature(uniquename, "gene", POMBE),
        RawFeature(transcript, "mRNA", POMBE),
    ]
    raw.feature_locs += [
        RawFeatureLoc(uniquename, "chromosome_1", start, end, strand),
        RawFeatureLoc(transcript, "chromosome_1", start, end, strand),
    ]
    raw.feature_relationships.append(RawFeatureRelationship(transcript, uniquename, "part_of"))
    for number, (exon_start, exon_end) in enumerate(exons, 1):
        exon = f"{transcript}:exon:{number}"
        raw.features.append(RawFeature(exon, "exon", POMBE))
        raw.feature_locs.append(RawFeatureLoc(exon, "chromosome_1", exon_start, exon_end, strand))
        raw.feature_relationships.append(RawFeatureRelationship(exon, transcript, "part_of"))


def test_exon_count_bounded_range(raw, config):
    _add_gene(raw, "SPAC2.01", [(71, 75), (80, 85), (90, 99)])
    _add_gene(raw, "SPAC2.02", [(1, 5), (11, 15), (21, 25), (31, 35), (41, 50)])
    web_data = build_web_data(raw, config)
    index = GeneIndex(web_data.api_maps, config.server.subsets.prefixes_to_remove)

    assert web_data.api_maps.gene_summaries["SPAC2.01"].exon_count == 3
    assert web_data.api_maps.gene_summaries["SPAC2.02"].exon_count == 5

    node = IntRangeNode(range_type=IntRangeType.EXON_COUNT, start=2, end=4)

    # SPAC1.02 and SPAC1.03 have one exon each
    assert sorted(node.exec(index)) == ["SPAC1.01", "SPAC2.01"]


def test_exon_count_skips_genes_without_transcripts(index):
    node = IntRangeNode(range_type=IntRangeType.EXON_COUNT, start=0, end=0)

    assert node.exec(index) == []


def test_protein_length_range(index):
    node = IntRangeNode(range_type=IntRangeType.PROTEIN_LENGTH, start=100, end=None)

    assert node.exec(index) == ["SPAC1.02"]


def test_genome_range_overlap(index):
    node = IntRangeNode(
        range_type=IntRangeType.GENOME_RANGE_CONTAINS,
        start=100,
        end=165,
        chromosome_name="chromosome_1",
    )
    other_chromosome = IntRangeNode(
        range_type=IntRangeType.GENOME_RANGE_CONTAINS,
        start=100,
        end=165,
        chromosome_name="chromosome_2",
    )

    assert sorted(node.exec(index)) == ["SPAC1.02", "SPAC1.03"]
    assert other_chromosome.exec(index) == []


def test_molecular_weight_range(index):
    node = FloatRangeNode(range_type=FloatRangeType.PROTEIN_MOL_WEIGHT, start=5.0, end=20.0)

    assert node.exec(index) == ["SPAC1.02"]


# ============================================================================
# Boolean operators
# ============================================================================


def test_or_is_commutative_and_idempotent(index):
    a = TermNode(termid=GC)
    b = GeneListNode(ids=["SPAC1.03", "SPAC1.01"])

    assert set(OrNode(nodes=[a, b]).exec(index)) == set(OrNode(nodes=[b, a]).exec(index))
    assert OrNode(nodes=[a, a]).exec(index) == a.exec(index)
    assert OrNode(nodes=[a, b]).exec(index) == ["SPAC1.01", "SPAC1.03"]


def test_and_intersects_in_first_child_order(index):
    a = GeneListNode(ids=["SPAC1.02", "SPAC1.03", "SPAC1.01"])
    b = TermNode(termid=P)

    assert AndNode(nodes=[a, b]).exec(index) == ["SPAC1.02", "SPAC1.01"]
    assert set(AndNode(nodes=[b, a]).exec(index)) == {"SPAC1.01", "SPAC1.02"}


def test_not_of_itself_is_empty(index):
    a = TermNode(termid=P)

    assert NotNode(node_a=a, node_b=a).exec(index) == []
    assert NotNode(node_a=a, node_b=TermNode(termid=GC)).exec(index) == ["SPAC1.02"]


@pytest.mark.parametrize("node_cls", [OrNode, AndNode])
def test_empty_operator_is_an_error(index, node_cls):
    with pytest.raises(QueryError, match="illegal query"):
        node_cls(nodes=[]).exec(index)


def test_nested_error_propagates(index):
    node = AndNode(nodes=[TermNode(termid=P), OrNode(nodes=[])])

    with pytest.raises(QueryError):
        node.exec(index)


# ============================================================================
# Top-level query
# ============================================================================


def test_query_from_json_tree(index):
    query = Query.model_validate({
        "constraints": {
            "node_type": "not",
            "node_a": {"node_type": "term", "termid": P},
            "node_b": {"node_type": "gene_list", "ids": ["SPAC1.01"]},
        },
        "output_options": {"field_names": ["gene_name", "protein_length", "deletion_viability"]},
    })

    rows = query.exec(index)

    assert len(rows) == 1
    row = rows[0].model_dump()
    assert row["gene_uniquename"] == "SPAC1.02"
    assert row["gene_name"] == "def2"
    assert row["protein_length"] == 150
    assert row["deletion_viability"] == "inviable"


def test_query_protein_and_nucleotide_sequences(index):
    protein = Query.from_constraints(
        {"node_type": "gene_list", "ids": ["SPAC1.01"]}, sequence="protein"
    )
    with_introns = Query.from_constraints(
        {"node_type": "gene_list", "ids": ["SPAC1.01"]},
        sequence={"nucleotide": {"include_introns": True}},
    )
    spliced = Query.from_constraints(
        {"node_type": "gene_list", "ids": ["SPAC1.01"]},
        sequence={"nucleotide": {}},
    )

    assert protein.exec(index)[0].sequence == "MKVLAT*"
    assert len(with_introns.exec(index)[0].sequence) == 60
    assert len(spliced.exec(index)[0].sequence) == 50


def test_unknown_gene_gives_empty_fields(index):
    query = Query.from_constraints(
        {"node_type": "gene_list", "ids": ["SPNOTAGENE"]}, field_names=["gene_name"]
    )

    row = query.exec(index)[0].model_dump()

    assert row == {"gene_uniquename": "SPNOTAGENE", "sequence": None, "gene_name": None}


def test_unknown_output_field_is_an_error(index):
    query = Query.from_constraints(
        {"node_type": "gene_list", "ids": ["SPAC1.01"]}, field_names=["favourite_colour"]
    )

    with pytest.raises(QueryError, match="favourite_colour"):
        query.exec(index)
