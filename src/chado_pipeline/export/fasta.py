"""FASTA files: feature sequences and chromosomes."""

from pathlib import Path

import structlog

from chado_pipeline.config.schema import FASTA_SEQ_COLUMNS, PipelineConfig
from chado_pipeline.export.files import write_text
from chado_pipeline.model import FeatureType, WebData

logger = structlog.get_logger()


def wrap_sequence(residues: str, width: int = FASTA_SEQ_COLUMNS) -> str:
    """Split residues into lines of at most width characters."""
    return "".join(residues[i:i + width] + "\n" for i in range(0, len(residues), width))


def fasta_record(header: str, residues: str) -> str:
    return f">{header}\n" + wrap_sequence(residues)


def _feature_sequence_records(web_data: WebData, taxonid: int) -> dict[str, list[str]]:
    records: dict[str, list[str]] = {
        "cds.fa": [],
        "cds+introns.fa": [],
        "cds+introns+utrs.fa": [],
        "introns_within_cds.fa": [],
        "five_prime_utrs.fa": [],
        "three_prime_utrs.fa": [],
        "peptide.fa": [],
    }

    for gene in web_data.genes.values():
        if gene.taxonid != taxonid:
            continue
        for transcript in gene.transcripts:
            if transcript.protein is None:
                continue
            header = transcript.uniquename
            records["cds.fa"].append(fasta_record(header, transcript.spliced_sequence()))
            records["cds+introns.fa"].append(
                fasta_record(header, transcript.spliced_sequence(include_introns=True))
            )
            records["cds+introns+utrs.fa"].append(
                fasta_record(
                    header,
                    transcript.spliced_sequence(
                        include_introns=True,
                        include_5_prime_utr=True,
                        include_3_prime_utr=True,
                    ),
                )
            )
            for part in transcript.parts:
                part_type = FeatureType(part.feature_type)
                if part_type == FeatureType.CDS_INTRON:
                    records["introns_within_cds.fa"].append(fasta_record(part.uniquename, part.residues))
                elif part_type == FeatureType.FIVE_PRIME_UTR:
                    records["five_prime_utrs.fa"].append(fasta_record(part.uniquename, part.residues))
                elif part_type == FeatureType.THREE_PRIME_UTR:
                    records["three_prime_utrs.fa"].append(fasta_record(part.uniquename, part.residues))

        protein = gene.first_protein()
        if protein is not None:
            header = f"{gene.uniquename}:pep {gene.name or ''}|{gene.product or ''}"
            records["peptide.fa"].append(fasta_record(header, protein.sequence))

    return records


def write_feature_sequences(web_data: WebData, config: PipelineConfig, output_dir: Path) -> list[Path]:
    sequence_dir = Path(output_dir) / "fasta" / "feature_sequences"
    records = _feature_sequence_records(web_data, config.load_organism_taxonid)
    return [write_text(sequence_dir / file_name, "".join(lines)) for file_name, lines in records.items()]


def write_chromosome_sequences(web_data: WebData, config: PipelineConfig, output_dir: Path) -> list[Path]:
    chromosome_dir = Path(output_dir) / "fasta" / "chromosomes"
    organism = config.load_organism()
    prefix = organism.full_name()

    written = []
    all_records = []
    for name, chromosome in web_data.chromosomes.items():
        if chromosome.taxonid != organism.taxonid:
            continue
        chromosome_config = config.find_chromosome_config(name)
        record = fasta_record(chromosome_config.export_id, chromosome.residues)
        all_records.append(record)
        written.append(
            write_text(chromosome_dir / f"{prefix}_{chromosome_config.export_file_id}.fa", record)
        )

    written.append(write_text(chromosome_dir / f"{prefix}_all_chromosomes.fa", "".join(all_records)))
    return written


def write_fasta(web_data: WebData, config: PipelineConfig, output_dir: Path) -> list[Path]:
    written = write_feature_sequences(web_data, config, output_dir)
    written += write_chromosome_sequences(web_data, config, output_dir)
    logger.info("fasta_written", file_count=len(written))
    return written
