"""TSV reports under misc/, written with polars."""

from collections import Counter
from pathlib import Path
from typing import Iterable, Optional

import polars as pl
import structlog

from chado_pipeline.config.schema import AnnotationSubsetConfig, PipelineConfig
from chado_pipeline.errors import ConfigError
from chado_pipeline.export.files import write_tsv
from chado_pipeline.model import (
    ChromosomeLocation,
    DeletionViability,
    FeatureType,
    GeneDetails,
    WebData,
)

logger = structlog.get_logger()

AMINO_ACIDS = "ACDEFGHIKLMNPQRSTVWY"

GO_CV_NAMES = ("biological_process", "molecular_function", "cellular_component")


def make_frame(columns: list[str], rows: Iterable[Iterable]) -> pl.DataFrame:
    """All columns are rendered as strings, None as the empty string."""
    rendered = [["" if v is None else str(v) for v in row] for row in rows]
    return pl.DataFrame(rendered, schema={c: pl.Utf8 for c in columns}, orient="row")


def _synonyms(gene: GeneDetails) -> str:
    return ",".join(s.name for s in gene.synonyms)


def _is_coding(gene: GeneDetails) -> bool:
    return gene.first_protein() is not None


def _load_organism_genes(web_data: WebData, config: PipelineConfig) -> list[GeneDetails]:
    return [g for g in web_data.genes.values() if g.taxonid == config.load_organism_taxonid]


def gene_id_tables(genes: list[GeneDetails]) -> dict[str, tuple[pl.DataFrame, bool]]:
    """File name -> (frame, include_header)."""
    coding = [g for g in genes if _is_coding(g)]
    pseudogenes = [g for g in genes if g.feature_type == "pseudogene"]
    rna = [
        g for g in genes
        if g.transcripts and not _is_coding(g) and g.feature_type != "pseudogene"
    ]
    return {
        "sysID2product.tsv": (
            make_frame(
                ["uniquename", "name", "synonyms", "product"],
                [(g.uniquename, g.name, _synonyms(g), g.product) for g in coding],
            ),
            False,
        ),
        "sysID2product.rna.tsv": (
            make_frame(
                ["uniquename", "name", "synonyms", "product"],
                [(g.uniquename, g.name, _synonyms(g), g.product) for g in rna],
            ),
            False,
        ),
        "pseudogeneIDs.tsv": (
            make_frame(["uniquename", "name"], [(g.uniquename, g.name) for g in pseudogenes]),
            False,
        ),
        "gene_IDs_names.tsv": (
            make_frame(
                ["uniquename", "name", "synonyms"],
                [(g.uniquename, g.name, _synonyms(g)) for g in genes],
            ),
            False,
        ),
        "gene_IDs_names_products.tsv": (
            make_frame(
                [
                    "gene_systematic_id",
                    "gene_systematic_id_with_prefix",
                    "gene_name",
                    "chromosome_id",
                    "gene_product",
                    "uniprot_id",
                    "gene_type",
                    "synonyms",
                ],
                [
                    (
                        g.uniquename,
                        g.uniquename,
                        g.name,
                        g.location.chromosome_name if g.location else None,
                        g.product,
                        g.uniprot_identifier,
                        g.feature_type,
                        _synonyms(g),
                    )
                    for g in genes
                ],
            ),
            True,
        ),
    }


def protein_tables(genes: list[GeneDetails]) -> dict[str, pl.DataFrame]:
    peptide_rows = []
    feature_rows = []
    composition_rows = []
    tm_rows = []

    for gene in genes:
        protein = gene.first_protein()
        if protein is None:
            continue
        mass_kda = None
        if protein.molecular_weight is not None:
            mass_kda = f"{protein.molecular_weight:.2f}"
        peptide_rows.append(
            (
                gene.uniquename,
                mass_kda,
                protein.isoelectric_point,
                protein.charge_at_ph7,
                protein.length,
                protein.codon_adaptation_index,
            )
        )

        for match in gene.interpro_matches:
            for location in match.locations:
                feature_rows.append(
                    (
                        gene.uniquename,
                        gene.name,
                        protein.uniquename,
                        match.id,
                        match.dbname,
                        match.name,
                        location.start,
                        location.end,
                        protein.length,
                    )
                )

        counts = Counter(protein.sequence)
        composition_rows.append([gene.uniquename] + [counts.get(aa, 0) for aa in AMINO_ACIDS])

        if gene.tm_domain_coords:
            coords = ",".join(f"{c.start}..{c.end}" for c in gene.tm_domain_coords)
            seqs = ",".join(protein.sequence[c.start - 1:c.end] for c in gene.tm_domain_coords)
            tm_rows.append((gene.uniquename, gene.name, coords, seqs))

    return {
        "PeptideStats.tsv": make_frame(
            ["Systematic_ID", "Mass (kDa)", "pI", "Charge", "Num_residues", "CAI"],
            peptide_rows,
        ),
        "ProteinFeatures.tsv": make_frame(
            [
                "systematic_id",
                "gene_name",
                "peptide_id",
                "domain_id",
                "database",
                "domain_name",
                "start",
                "end",
                "peptide_length",
            ],
            feature_rows,
        ),
        "aa_composition.tsv": make_frame(["Systematic_ID"] + list(AMINO_ACIDS), composition_rows),
        "transmembrane_domain_coords_and_seqs.tsv": make_frame(
            ["gene_systematic_id", "gene_name", "tm_coords", "tm_seqs"],
            tm_rows,
        ),
    }


def merge_abutting(locations: list[ChromosomeLocation]) -> list[tuple[int, int]]:
    """Sorted (start, end) spans with touching or overlapping locations merged."""
    spans: list[list[int]] = []
    for location in sorted(locations, key=lambda l: (l.start_pos, l.end_pos)):
        if spans and location.start_pos <= spans[-1][1] + 1:
            spans[-1][1] = max(spans[-1][1], location.end_pos)
        else:
            spans.append([location.start_pos, location.end_pos])
    return [(start, end) for start, end in spans]


def coordinate_tables(genes: list[GeneDetails], config: PipelineConfig) -> dict[str, pl.DataFrame]:
    gene_rows: dict[str, list] = {}
    cds_rows: dict[str, list] = {}
    exon_rows: dict[str, list] = {}

    for gene in genes:
        if gene.location is None:
            continue
        file_id = config.find_chromosome_config(gene.location.chromosome_name).export_file_id
        strand = gene.location.strand.to_gff_str()
        gene_rows.setdefault(file_id, []).append(
            (gene.uniquename, gene.location.start_pos, gene.location.end_pos, strand)
        )
        for transcript in gene.transcripts:
            exon_like = [
                p.location for p in transcript.parts if not FeatureType(p.feature_type).is_intron
            ]
            for start, end in merge_abutting(exon_like):
                exon_rows.setdefault(file_id, []).append((transcript.uniquename, start, end, strand))
            if transcript.protein is not None:
                for start, end in merge_abutting([p.location for p in transcript.exons()]):
                    cds_rows.setdefault(file_id, []).append((transcript.uniquename, start, end, strand))

    columns = ["uniquename", "start", "end", "strand"]
    tables = {}
    for suffix, rows_by_file in (("gene", gene_rows), ("cds", cds_rows), ("exon", exon_rows)):
        for file_id, rows in sorted(rows_by_file.items()):
            tables[f"{file_id}.{suffix}.coords.tsv"] = make_frame(columns, rows)
    return tables


def complex_annotation_table(web_data: WebData, config: PipelineConfig) -> Optional[pl.DataFrame]:
    """Genes annotated to descendants of the configured complex term."""
    complexes = config.file_exports.macromolecular_complexes
    if complexes is None:
        return None
    parent = web_data.terms.get(complexes.parent_complex_termid)
    rows = []
    if parent is not None:
        block = parent.annotations
        excluded = set(complexes.excluded_terms)
        for groups in block.cv_annotations.values():
            for group in groups:
                if group.is_not or group.term in excluded:
                    continue
                term = block.terms_by_termid[group.term]
                for detail_id in group.annotations:
                    detail = block.annotation_details[detail_id]
                    for gene_uniquename in detail.genes:
                        gene = block.genes_by_uniquename.get(gene_uniquename)
                        if gene is None:
                            continue
                        rows.append(
                            (
                                group.term,
                                term.name,
                                gene.uniquename,
                                gene.name,
                                gene.product,
                                detail.evidence,
                                detail.reference,
                                detail.assigned_by,
                            )
                        )
    return make_frame(
        [
            "acc",
            "go_name",
            "systematic_id",
            "symbol",
            "gene_product_description",
            "evidence_code",
            "source",
            "assigned_by",
        ],
        sorted(set(rows), key=lambda r: tuple("" if v is None else str(v) for v in r)),
    )


def viability_table(genes: list[GeneDetails]) -> pl.DataFrame:
    return make_frame(
        ["gene_systematic_id", "viability"],
        [
            (g.uniquename, g.deletion_viability.value)
            for g in genes
            if g.deletion_viability != DeletionViability.UNKNOWN
        ],
    )


def slim_tables(web_data: WebData, config: PipelineConfig) -> dict[str, pl.DataFrame]:
    tables = {}
    for slim_name in config.all_slims():
        subset = web_data.term_subsets.get(slim_name)
        if subset is None:
            continue
        tables[f"{slim_name}_ids_and_names.tsv"] = make_frame(
            ["termid", "name"], [(e.termid, e.name) for e in subset.elements]
        )
    return tables


def table_for_export(web_data: WebData, subset_config: AnnotationSubsetConfig) -> pl.DataFrame:
    """
    Rows for one configured annotation subset.

    Rows are deduplicated on their rendered string values, so two details
    that render identically produce one row.

    Raises:
        ConfigError: If a configured term id is not a known term
    """
    seen = set()
    rows = []
    duplicate_count = 0

    for termid in subset_config.term_ids:
        term = web_data.terms.get(termid)
        if term is None:
            raise ConfigError(
                f"no term details found for {termid} in annotation subset {subset_config.file_name}"
            )
        block = term.annotations
        for cv_name, groups in block.cv_annotations.items():
            for group in groups:
                if group.is_not:
                    continue
                group_term = block.terms_by_termid[group.term]
                for detail_id in group.annotations:
                    detail = block.annotation_details[detail_id]
                    for row in _subset_rows(block, cv_name, group_term, detail, subset_config):
                        if row in seen:
                            duplicate_count += 1
                            continue
                        seen.add(row)
                        rows.append(row)

    if duplicate_count:
        logger.warning(
            "subset_rows_deduplicated",
            file_name=subset_config.file_name,
            duplicate_count=duplicate_count,
        )
    return make_frame(subset_config.columns, rows)


def _subset_rows(block, cv_name, term, detail, subset_config: AnnotationSubsetConfig):
    genotype = block.genotypes_by_uniquename.get(detail.genotype) if detail.genotype else None
    if genotype is not None:
        is_multi = genotype.is_multi_allele
        if subset_config.single_or_multi_allele == "single" and is_multi:
            return
        if subset_config.single_or_multi_allele == "multi" and not is_multi:
            return
        pairs = [
            (block.alleles_by_uniquename[e.allele_uniquename], e.expression)
            for e in genotype.expressed_alleles
        ]
        entries = [
            (allele.gene_uniquename, allele.display_name(), expression)
            for allele, expression in pairs
        ]
    else:
        entries = [(gene, None, None) for gene in detail.genes]

    for gene_uniquename, allele_name, _ in entries:
        gene = block.genes_by_uniquename.get(gene_uniquename)
        values = {
            "cv_name": cv_name,
            "termid": term.termid,
            "term_name": term.name,
            "allele": allele_name or "",
            "gene_uniquename": gene_uniquename,
            "gene_name": (gene.name if gene else None) or "",
        }
        yield tuple(values.get(column, "") for column in subset_config.columns)


def go_eco_table(genes: list[GeneDetails]) -> pl.DataFrame:
    rows = []
    for gene in genes:
        block = gene.annotations
        for cv_name in GO_CV_NAMES:
            for group in block.cv_annotations.get(cv_name, []):
                if group.is_not:
                    continue
                for detail_id in group.annotations:
                    detail = block.annotation_details[detail_id]
                    rows.append(
                        (
                            gene.uniquename,
                            gene.name,
                            group.term,
                            detail.evidence,
                            detail.eco_evidence,
                            detail.reference,
                            detail.assigned_by,
                            detail.date,
                        )
                    )
    return make_frame(
        [
            "gene_systematic_id",
            "gene_name",
            "go_termid",
            "evidence_code",
            "eco_evidence",
            "reference",
            "assigned_by",
            "date",
        ],
        rows,
    )


def write_tables(web_data: WebData, config: PipelineConfig, output_dir: Path) -> list[Path]:
    misc_dir = Path(output_dir) / "misc"
    genes = _load_organism_genes(web_data, config)
    written = []

    for file_name, (df, include_header) in gene_id_tables(genes).items():
        written.append(write_tsv(misc_dir / file_name, df, include_header=include_header))

    frames: dict[str, pl.DataFrame] = {}
    frames.update(protein_tables(genes))
    frames.update(coordinate_tables(genes, config))
    frames["FYPOviability.tsv"] = viability_table(genes)
    frames.update(slim_tables(web_data, config))
    frames["go_annotations_eco.tsv"] = go_eco_table(genes)

    complexes = complex_annotation_table(web_data, config)
    if complexes is not None:
        frames["Complex_annotation.tsv"] = complexes

    for subset_config in config.file_exports.annotation_subsets:
        frames[subset_config.file_name] = table_for_export(web_data, subset_config)

    for file_name, df in frames.items():
        written.append(write_tsv(misc_dir / file_name, df))

    logger.info("tables_written", file_count=len(written))
    return written
