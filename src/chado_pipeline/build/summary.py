"""Collapse the annotations of one term group into compact summary rows."""

from typing import Callable, Optional

from chado_pipeline.config.schema import CvConfig
from chado_pipeline.model.annotation import OntAnnotationDetail, TermSummaryRow
from chado_pipeline.model.extension import (
    ExtPart,
    GeneExtRange,
    SummaryGenesExtRange,
    SummaryTermsExtRange,
    TermExtRange,
    extension_key,
)


class _Row:
    __slots__ = ("genes", "genotypes", "extension")

    def __init__(self, genes: set[str], genotypes: set[str], extension: list[ExtPart]):
        self.genes = genes
        self.genotypes = genotypes
        self.extension = extension

    def owner_key(self) -> tuple:
        return (tuple(sorted(self.genes)), tuple(sorted(self.genotypes)))


def make_summary(
    details: list[OntAnnotationDetail],
    cv_config: CvConfig,
    host_type: str,
    sort_parts: Callable[[list[ExtPart]], list[ExtPart]],
    gene_order: Optional[Callable[[str], tuple]] = None,
) -> list[TermSummaryRow]:
    """
    Build the summary rows for the normal (not NOT) annotations of a term.

    Gene pages leave the gene list empty and genotype pages the genotype
    list, since the host is implied. Rows with identical extensions are
    merged into one row listing all their genes and genotypes, then ranges
    of summary_relation_ranges_to_collect relations are collected into a
    single part, and finally an extension-less row is dropped when the same
    genes/genotypes also have a row with an extension.

    gene_order gives the display order of each row's genes; by default they
    are sorted by uniquename.
    """
    gene_order = gene_order or (lambda uniquename: (1, "", uniquename))
    hidden = set(cv_config.summary_relations_to_hide)

    merged: dict[tuple, _Row] = {}
    for detail in details:
        extension = [part for part in detail.extension if part.rel_type_name not in hidden]
        genes = set() if host_type in ("gene", "genotype") else set(detail.genes)
        genotypes = set()
        if detail.genotype is not None and host_type != "genotype":
            genotypes.add(detail.genotype)

        key = extension_key(extension)
        row = merged.get(key)
        if row is None:
            merged[key] = _Row(genes, genotypes, list(extension))
        else:
            row.genes |= genes
            row.genotypes |= genotypes

    rows = list(merged.values())
    for rel_name in cv_config.summary_relation_ranges_to_collect:
        rows = _collect_ranges(rows, rel_name, sort_parts)

    rows = _remove_redundant(rows)

    result = [
        TermSummaryRow(
            gene_uniquenames=sorted(row.genes, key=gene_order),
            genotype_uniquenames=sorted(row.genotypes),
            extension=sort_parts(row.extension),
        )
        for row in rows
    ]
    result.sort(
        key=lambda r: (
            r.gene_uniquenames,
            r.genotype_uniquenames,
            extension_key(r.extension),
        )
    )
    return result


def _collect_ranges(
    rows: list[_Row],
    rel_name: str,
    sort_parts: Callable[[list[ExtPart]], list[ExtPart]],
) -> list[_Row]:
    """Merge rows that differ only in the range of rel_name."""
    result: list[_Row] = []
    groups: dict[tuple, list[tuple[_Row, list[ExtPart]]]] = {}

    for row in rows:
        collected = [
            part
            for part in row.extension
            if part.rel_type_name == rel_name
            and isinstance(part.ext_range, (GeneExtRange, SummaryGenesExtRange, TermExtRange, SummaryTermsExtRange))
        ]
        if not collected:
            result.append(row)
            continue
        rest = [part for part in row.extension if part not in collected]
        key = row.owner_key() + (extension_key(rest),)
        groups.setdefault(key, []).append((row, collected))

    for members in groups.values():
        first_row, first_collected = members[0]
        if len(members) == 1:
            result.append(first_row)
            continue

        rest = [part for part in first_row.extension if part not in first_collected]
        gene_groups: list[list[str]] = []
        termids: list[str] = []
        for _, collected in members:
            genes = [gene for part in collected for gene in part.gene_uniquenames()]
            if genes and genes not in gene_groups:
                gene_groups.append(genes)
            for part in collected:
                for termid in part.termids():
                    if termid not in termids:
                        termids.append(termid)

        display_name = first_collected[0].rel_type_display_name
        new_parts = []
        if gene_groups:
            new_parts.append(
                ExtPart(
                    rel_type_name=rel_name,
                    rel_type_display_name=display_name,
                    ext_range=SummaryGenesExtRange(value=gene_groups),
                )
            )
        if termids:
            new_parts.append(
                ExtPart(
                    rel_type_name=rel_name,
                    rel_type_display_name=display_name,
                    ext_range=SummaryTermsExtRange(value=termids),
                )
            )
        result.append(_Row(set(first_row.genes), set(first_row.genotypes), sort_parts(rest + new_parts)))

    return result


def _remove_redundant(rows: list[_Row]) -> list[_Row]:
    owners_with_extension = {row.owner_key() for row in rows if row.extension}
    return [
        row
        for row in rows
        if row.extension or row.owner_key() not in owners_with_extension
    ]
