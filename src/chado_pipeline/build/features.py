"""Assemble locations, transcripts, computed introns and proteins for genes."""

from typing import Optional

from chado_pipeline.errors import BuildError
from chado_pipeline.model.features import (
    ChromosomeLocation,
    FeatureShort,
    FeatureType,
    ProteinDetails,
    Strand,
    TranscriptDetails,
)
from chado_pipeline.raw.models import RawFeature, RawFeatureLoc

PART_TYPE_MAP = {
    "exon": FeatureType.EXON,
    "five_prime_UTR": FeatureType.FIVE_PRIME_UTR,
    "three_prime_UTR": FeatureType.THREE_PRIME_UTR,
}

PROTEIN_PROPS = (
    "molecular_weight",
    "average_residue_weight",
    "charge_at_ph7",
    "isoelectric_point",
    "codon_adaptation_index",
)

_COMPLEMENT = str.maketrans("ACGTUNacgtun", "TGCAANtgcaan")


def reverse_complement(residues: str) -> str:
    return residues.translate(_COMPLEMENT)[::-1]


def make_location(loc: RawFeatureLoc) -> ChromosomeLocation:
    return ChromosomeLocation(
        chromosome_name=loc.chromosome,
        start_pos=loc.start_pos,
        end_pos=loc.end_pos,
        strand=Strand.from_raw(loc.strand),
        phase=loc.phase,
    )


def location_residues(location: ChromosomeLocation, chromosome_residues: Optional[str]) -> str:
    """Residues of a location, reverse complemented on the reverse strand."""
    if not chromosome_residues:
        return ""
    residues = chromosome_residues[location.start_pos - 1:location.end_pos]
    if location.strand == Strand.REVERSE:
        return reverse_complement(residues)
    return residues


def _intron_type(before: FeatureType, after: FeatureType) -> FeatureType:
    if FeatureType.FIVE_PRIME_UTR in (before, after):
        return FeatureType.FIVE_PRIME_UTR_INTRON
    if FeatureType.THREE_PRIME_UTR in (before, after):
        return FeatureType.THREE_PRIME_UTR_INTRON
    return FeatureType.CDS_INTRON


def assemble_parts(
    transcript_uniquename: str,
    raw_parts: list[tuple[RawFeature, RawFeatureLoc]],
    chromosome_residues: Optional[str],
) -> list[FeatureShort]:
    """
    Order exon/UTR parts in transcript order and add the introns between them.

    Introns are computed from the gaps between consecutive parts and are
    numbered in transcript order.
    """
    located = []
    for feature, loc in raw_parts:
        if feature.feature_type not in PART_TYPE_MAP:
            continue
        located.append((PART_TYPE_MAP[feature.feature_type], feature, make_location(loc)))

    located.sort(key=lambda item: (item[2].start_pos, item[2].end_pos, item[1].uniquename))

    with_introns: list[tuple[FeatureType, Optional[str], Optional[str], ChromosomeLocation]] = []
    previous = None
    for part_type, feature, location in located:
        if previous is not None:
            prev_type, prev_location = previous
            if location.start_pos > prev_location.end_pos + 1:
                intron_location = ChromosomeLocation(
                    chromosome_name=location.chromosome_name,
                    start_pos=prev_location.end_pos + 1,
                    end_pos=location.start_pos - 1,
                    strand=location.strand,
                )
                with_introns.append((_intron_type(prev_type, part_type), None, None, intron_location))
        with_introns.append((part_type, feature.uniquename, feature.name, location))
        previous = (part_type, location)

    if located and located[0][2].strand == Strand.REVERSE:
        with_introns.reverse()

    parts = []
    intron_count = 0
    for part_type, uniquename, name, location in with_introns:
        if uniquename is None:
            intron_count += 1
            uniquename = f"{transcript_uniquename}:intron:{intron_count}"
        parts.append(
            FeatureShort(
                feature_type=part_type.value,
                uniquename=uniquename,
                name=name,
                location=location,
                residues=location_residues(location, chromosome_residues),
            )
        )
    return parts


def make_protein(feature: RawFeature, props: dict[str, list[str]]) -> ProteinDetails:
    values = {}
    for prop_name in PROTEIN_PROPS:
        raw_values = props.get(prop_name)
        if raw_values:
            try:
                values[prop_name] = float(raw_values[0])
            except ValueError:
                raise BuildError(
                    f"non-numeric {prop_name} {raw_values[0]!r} for {feature.uniquename}"
                ) from None
    return ProteinDetails(uniquename=feature.uniquename, sequence=feature.residues or "", **values)


def make_transcript(
    feature: RawFeature,
    loc: RawFeatureLoc,
    raw_parts: list[tuple[RawFeature, RawFeatureLoc]],
    protein: Optional[ProteinDetails],
    chromosome_residues: Optional[str],
) -> TranscriptDetails:
    parts = assemble_parts(feature.uniquename, raw_parts, chromosome_residues)

    cds_location = None
    exons = [part for part in parts if part.feature_type == FeatureType.EXON.value]
    if protein is not None and exons:
        cds_location = ChromosomeLocation(
            chromosome_name=exons[0].location.chromosome_name,
            start_pos=min(part.location.start_pos for part in exons),
            end_pos=max(part.location.end_pos for part in exons),
            strand=exons[0].location.strand,
        )

    return TranscriptDetails(
        uniquename=feature.uniquename,
        transcript_type=feature.feature_type,
        location=make_location(loc),
        parts=parts,
        protein=protein,
        cds_location=cds_location,
    )
