"""Shared fixtures: a small fission yeast snapshot and the example config."""

from pathlib import Path

import pytest

from chado_pipeline.build import build_web_data
from chado_pipeline.config import load_config
from chado_pipeline.query import GeneIndex
from chado_pipeline.raw import (
    RawAnnotation,
    RawChadoprop,
    RawData,
    RawExtensionPart,
    RawFeature,
    RawFeatureDbxref,
    RawFeatureLoc,
    RawFeatureProp,
    RawFeatureRelationship,
    RawFeatureSynonym,
    RawPublication,
    RawTerm,
    RawTermRelationship,
    RawTermSubset,
    RawTermSynonym,
)

CONFIG_PATH = Path(__file__).parent.parent / "config" / "main_config.yaml"

CHROMOSOME_RESIDUES = "ACGT" * 50

POMBE = 4896
HUMAN = 9606


@pytest.fixture
def config_path():
    return CONFIG_PATH


@pytest.fixture
def config():
    return load_config(CONFIG_PATH)


def make_raw() -> RawData:
    """
    Three pombe genes on one chromosome, a human ortholog and an E. coli
    gene from an organism missing from the configuration.

    GO terms form the chain P <- C <- GC (is_a), where GO:0000001 is P.
    """
    terms = [
        RawTerm("GO:0000001", "parent process", "biological_process", definition="A process."),
        RawTerm("GO:0000002", "child process", "biological_process"),
        RawTerm("GO:0000003", "grandchild process", "biological_process"),
        RawTerm("GO:0000009", "old process", "biological_process", is_obsolete=True),
        RawTerm("GO:0000010", "kinase activity", "molecular_function"),
        RawTerm("FYPO:0000001", "viable", "fission_yeast_phenotype"),
        RawTerm("FYPO:0000002", "inviable cell", "fission_yeast_phenotype"),
        RawTerm("FYPO:0000003", "abnormal cell shape", "fission_yeast_phenotype"),
        RawTerm("FYECO:0000001", "standard temperature", "fission_yeast_experimental_condition"),
    ]
    term_relationships = [
        RawTermRelationship("GO:0000002", "GO:0000001", "is_a"),
        RawTermRelationship("GO:0000003", "GO:0000002", "is_a"),
    ]

    features = [
        RawFeature("chromosome_1", "chromosome", POMBE, residues=CHROMOSOME_RESIDUES),
        RawFeature("SPAC1.01", "gene", POMBE, name="abc1"),
        RawFeature("SPAC1.01.1", "mRNA", POMBE),
        RawFeature("SPAC1.01.1:exon:1", "exon", POMBE),
        RawFeature("SPAC1.01.1:exon:2", "exon", POMBE),
        RawFeature("SPAC1.01.1:pep", "polypeptide", POMBE, residues="MKVLAT*"),
        RawFeature("SPAC1.02", "gene", POMBE, name="def2"),
        RawFeature("SPAC1.02.1", "mRNA", POMBE),
        RawFeature("SPAC1.02.1:exon:1", "exon", POMBE),
        RawFeature("SPAC1.02.1:pep", "polypeptide", POMBE, residues="M" + "A" * 149),
        RawFeature("SPAC1.03", "gene", POMBE, name="ghi3"),
        RawFeature("SPAC1.03.1", "ncRNA", POMBE),
        RawFeature("SPAC1.03.1:exon:1", "exon", POMBE),
        RawFeature("SPAC1.LTR1", "LTR", POMBE),
        RawFeature("HUMAN1", "gene", HUMAN, name="HUM1"),
        RawFeature("ECOLI1", "gene", 562, name="ecoA"),
        RawFeature("SPAC1.02delta", "allele", POMBE, name="def2delta"),
        RawFeature("SPAC1.01-1", "allele", POMBE, name="abc1-1"),
        RawFeature("SPAC1.02+", "allele", POMBE, name="def2+"),
        RawFeature("genotype-1", "genotype", POMBE),
        RawFeature("genotype-2", "genotype", POMBE),
    ]

    feature_locs = [
        RawFeatureLoc("SPAC1.01", "chromosome_1", 11, 70, 1),
        RawFeatureLoc("SPAC1.01.1", "chromosome_1", 11, 70, 1),
        RawFeatureLoc("SPAC1.01.1:exon:1", "chromosome_1", 11, 30, 1),
        RawFeatureLoc("SPAC1.01.1:exon:2", "chromosome_1", 41, 70, 1),
        RawFeatureLoc("SPAC1.02", "chromosome_1", 101, 150, -1),
        RawFeatureLoc("SPAC1.02.1", "chromosome_1", 101, 150, -1),
        RawFeatureLoc("SPAC1.02.1:exon:1", "chromosome_1", 101, 150, -1),
        RawFeatureLoc("SPAC1.03", "chromosome_1", 160, 190, 1),
        RawFeatureLoc("SPAC1.03.1", "chromosome_1", 160, 190, 1),
        RawFeatureLoc("SPAC1.03.1:exon:1", "chromosome_1", 160, 190, 1),
        RawFeatureLoc("SPAC1.LTR1", "chromosome_1", 195, 200, 0),
    ]

    feature_relationships = [
        RawFeatureRelationship("SPAC1.01.1", "SPAC1.01", "part_of"),
        RawFeatureRelationship("SPAC1.01.1:exon:1", "SPAC1.01.1", "part_of"),
        RawFeatureRelationship("SPAC1.01.1:exon:2", "SPAC1.01.1", "part_of"),
        RawFeatureRelationship("SPAC1.01.1:pep", "SPAC1.01.1", "derives_from"),
        RawFeatureRelationship("SPAC1.02.1", "SPAC1.02", "part_of"),
        RawFeatureRelationship("SPAC1.02.1:exon:1", "SPAC1.02.1", "part_of"),
        RawFeatureRelationship("SPAC1.02.1:pep", "SPAC1.02.1", "derives_from"),
        RawFeatureRelationship("SPAC1.03.1", "SPAC1.03", "part_of"),
        RawFeatureRelationship("SPAC1.03.1:exon:1", "SPAC1.03.1", "part_of"),
        RawFeatureRelationship("SPAC1.02delta", "SPAC1.02", "instance_of"),
        RawFeatureRelationship("SPAC1.01-1", "SPAC1.01", "instance_of"),
        RawFeatureRelationship("SPAC1.02+", "SPAC1.02", "instance_of"),
        RawFeatureRelationship("SPAC1.02delta", "genotype-1", "part_of", expression="Null"),
        RawFeatureRelationship("SPAC1.01-1", "genotype-2", "part_of", expression="Not assayed"),
        RawFeatureRelationship("SPAC1.02+", "genotype-2", "part_of", expression="Overexpression"),
        RawFeatureRelationship(
            "SPAC1.01", "SPAC1.02", "interacts_physically",
            evidence="Affinity Capture-MS", reference="PMID:1",
        ),
        RawFeatureRelationship("SPAC1.01", "HUMAN1", "orthologous_to"),
    ]

    feature_props = [
        RawFeatureProp("SPAC1.01", "product", "protein kinase Abc1"),
        RawFeatureProp("SPAC1.01", "characterisation_status", "published"),
        RawFeatureProp("SPAC1.02", "product", "transporter Def2"),
        RawFeatureProp("SPAC1.01.1:pep", "molecular_weight", "0.8"),
        RawFeatureProp("SPAC1.02.1:pep", "molecular_weight", "10.5"),
        RawFeatureProp("SPAC1.02delta", "allele_type", "deletion"),
        RawFeatureProp("SPAC1.01-1", "allele_type", "amino_acid_mutation"),
        RawFeatureProp("SPAC1.02+", "allele_type", "wild_type"),
    ]

    annotations = [
        RawAnnotation(1, "SPAC1.01", "GO:0000003", reference="PMID:1", evidence="IDA"),
        RawAnnotation(2, "SPAC1.02", "GO:0000002", reference="PMID:1", evidence="IMP"),
        RawAnnotation(3, "SPAC1.02", "GO:0000002", reference="PMID:2", evidence="IDA"),
        RawAnnotation(4, "SPAC1.01", "GO:0000010", reference="PMID:1", evidence="IDA"),
        RawAnnotation(5, "SPAC1.03", "GO:0000003", reference="PMID:2", evidence="IDA", is_not=True),
        RawAnnotation(
            6, "genotype-1", "FYPO:0000002", reference="PMID:2", evidence="Microscopy",
            conditions=["FYECO:0000001"],
        ),
        RawAnnotation(7, "genotype-2", "FYPO:0000003", reference="PMID:2", evidence="Microscopy"),
        RawAnnotation(
            8, "SPAC1.03", "GO:0000010", reference="PMID:2", evidence="IPI", withs=["ECOLI1"],
        ),
    ]

    extension_parts = [
        RawExtensionPart(2, 0, "occurs_in", "misc", "nucleus"),
        RawExtensionPart(3, 0, "occurs_in", "misc", "nucleus"),
        RawExtensionPart(4, 0, "has_substrate", "gene", "SPAC1.02"),
    ]

    publications = [
        RawPublication(
            "PMID:1", title="Abc1 is a kinase", authors="Smith J, Jones K",
            publication_date="2019-12-01", canto_curator_role="community",
            canto_approved_date="2020-01-02",
        ),
        RawPublication(
            "PMID:2", title="Def2 transports things", authors="Brown A",
            publication_date="2021-03-03", canto_curator_role="admin",
            canto_approved_date="2021-05-05",
        ),
    ]

    return RawData(
        terms=terms,
        term_synonyms=[RawTermSynonym("GO:0000002", "kid process", "exact")],
        term_relationships=term_relationships,
        term_subsets=[RawTermSubset("GO:0000002", "goslim_pombe")],
        publications=publications,
        features=features,
        feature_props=feature_props,
        feature_locs=feature_locs,
        feature_relationships=feature_relationships,
        feature_synonyms=[RawFeatureSynonym("SPAC1.01", "abc-one")],
        feature_dbxrefs=[RawFeatureDbxref("chromosome_1", "ENA:CU329670")],
        annotations=annotations,
        extension_parts=extension_parts,
        chadoprops=[
            RawChadoprop("db_creation_datetime", "2024-01-01 00:00:00"),
            RawChadoprop("cv_version:biological_process", "2024-01-01"),
        ],
    )


@pytest.fixture
def raw():
    return make_raw()


@pytest.fixture
def web_data(raw, config):
    return build_web_data(raw, config)


@pytest.fixture
def index(web_data, config):
    return GeneIndex(web_data.api_maps, config.server.subsets.prefixes_to_remove)
