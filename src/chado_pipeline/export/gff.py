"""GFF3 files: combined, strand-partitioned and per-chromosome."""

from pathlib import Path
from typing import Optional
from urllib.parse import quote

import structlog

from chado_pipeline.config.schema import PipelineConfig
from chado_pipeline.export.files import write_text
from chado_pipeline.model import ChromosomeLocation, FeatureType, GeneDetails, Strand, WebData

logger = structlog.get_logger()

GFF_HEADER = "##gff-version 3\n"


def _escape(value: str) -> str:
    # reserved characters in GFF3 column 9
    return quote(value, safe=" :|/.-_()'+*")


def gff_line(
    seqid: str,
    source: str,
    feature_type: str,
    location: ChromosomeLocation,
    attributes: dict[str, Optional[str]],
    phase: str = ".",
) -> str:
    attribute_text = ";".join(
        f"{key}={_escape(value)}" for key, value in attributes.items() if value
    )
    return "\t".join(
        [
            seqid,
            source,
            feature_type,
            str(location.start_pos),
            str(location.end_pos),
            ".",
            location.strand.to_gff_str(),
            phase,
            attribute_text,
        ]
    ) + "\n"


def gene_gff_lines(gene: GeneDetails, seqid: str, source: str) -> list[str]:
    lines = [
        gff_line(
            seqid,
            source,
            gene.feature_type,
            gene.location,
            {"ID": gene.uniquename, "Name": gene.name},
        )
    ]
    for transcript in gene.transcripts:
        lines.append(
            gff_line(
                seqid,
                source,
                transcript.transcript_type,
                transcript.location,
                {"ID": transcript.uniquename, "Parent": gene.uniquename},
            )
        )
        for part in transcript.parts:
            part_type = FeatureType(part.feature_type)
            phase = "."
            if part_type == FeatureType.EXON:
                phase = str(part.location.phase or 0)
            lines.append(
                gff_line(
                    seqid,
                    source,
                    part_type.gff_type(),
                    part.location,
                    {"ID": part.uniquename, "Parent": transcript.uniquename},
                    phase=phase,
                )
            )
    return lines


def write_gff(web_data: WebData, config: PipelineConfig, output_dir: Path) -> list[Path]:
    """
    Write the load organism's genes and located features as GFF3.

    Every line goes to the combined file, to exactly one of the
    forward/reverse/unstranded files (by the strand of its gene or feature)
    and to its chromosome's file.
    """
    gff_dir = Path(output_dir) / "gff"
    organism = config.load_organism()
    prefix = organism.full_name()
    source = config.database_name

    by_strand: dict[Strand, list[str]] = {strand: [] for strand in Strand}
    by_chromosome: dict[str, list[str]] = {}
    all_lines: list[str] = []

    entries = []
    for gene in web_data.genes.values():
        if gene.taxonid == organism.taxonid and gene.location is not None:
            entries.append((gene.location, gene))
    for feature in web_data.other_features.values():
        chromosome = web_data.chromosomes.get(feature.location.chromosome_name)
        if chromosome is not None and chromosome.taxonid == organism.taxonid:
            entries.append((feature.location, feature))
    entries.sort(key=lambda e: (e[0].chromosome_name, e[0].start_pos, e[0].end_pos, e[1].uniquename))

    for location, entry in entries:
        chromosome_config = config.find_chromosome_config(location.chromosome_name)
        seqid = chromosome_config.export_id
        if isinstance(entry, GeneDetails):
            lines = gene_gff_lines(entry, seqid, source)
        else:
            lines = [
                gff_line(
                    seqid,
                    source,
                    entry.feature_type,
                    location,
                    {"ID": entry.uniquename, "Name": entry.name},
                )
            ]
        all_lines += lines
        by_strand[location.strand] += lines
        by_chromosome.setdefault(chromosome_config.export_file_id, []).extend(lines)

    written = [write_text(gff_dir / f"{prefix}_all_chromosomes.gff3", GFF_HEADER + "".join(all_lines))]
    for strand, file_suffix in (
        (Strand.FORWARD, "forward_strand"),
        (Strand.REVERSE, "reverse_strand"),
        (Strand.UNSTRANDED, "unstranded"),
    ):
        written.append(
            write_text(
                gff_dir / f"{prefix}_all_chromosomes_{file_suffix}.gff3",
                GFF_HEADER + "".join(by_strand[strand]),
            )
        )
    for export_file_id, lines in sorted(by_chromosome.items()):
        written.append(write_text(gff_dir / f"{prefix}_{export_file_id}.gff3", GFF_HEADER + "".join(lines)))

    logger.info("gff_written", file_count=len(written), line_count=len(all_lines))
    return written
