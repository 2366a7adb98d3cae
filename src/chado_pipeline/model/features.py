"""Genomic location, transcript, protein and domain models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Strand(str, Enum):
    FORWARD = "forward"
    REVERSE = "reverse"
    UNSTRANDED = "unstranded"

    @classmethod
    def from_raw(cls, value: Optional[int]) -> "Strand":
        if value is not None and value > 0:
            return cls.FORWARD
        if value is not None and value < 0:
            return cls.REVERSE
        return cls.UNSTRANDED

    def to_gff_str(self) -> str:
        return {"forward": "+", "reverse": "-", "unstranded": "."}[self.value]


class FeatureType(str, Enum):
    """Types of transcript parts, including computed introns."""

    EXON = "exon"
    CDS_INTRON = "cds_intron"
    FIVE_PRIME_UTR = "five_prime_utr"
    FIVE_PRIME_UTR_INTRON = "five_prime_utr_intron"
    THREE_PRIME_UTR = "three_prime_utr"
    THREE_PRIME_UTR_INTRON = "three_prime_utr_intron"

    @property
    def is_intron(self) -> bool:
        return self in (
            FeatureType.CDS_INTRON,
            FeatureType.FIVE_PRIME_UTR_INTRON,
            FeatureType.THREE_PRIME_UTR_INTRON,
        )

    @property
    def is_utr(self) -> bool:
        return self in (FeatureType.FIVE_PRIME_UTR, FeatureType.THREE_PRIME_UTR)

    def gff_type(self) -> str:
        return {
            "exon": "CDS",
            "cds_intron": "intron",
            "five_prime_utr": "five_prime_UTR",
            "five_prime_utr_intron": "intron",
            "three_prime_utr": "three_prime_UTR",
            "three_prime_utr_intron": "intron",
        }[self.value]


class DeletionViability(str, Enum):
    VIABLE = "viable"
    INVIABLE = "inviable"
    DEPENDS_ON_CONDITIONS = "depends_on_conditions"
    UNKNOWN = "unknown"


class ChromosomeLocation(BaseModel):
    """A 1-based, inclusive location on a chromosome."""

    chromosome_name: str
    start_pos: int
    end_pos: int
    strand: Strand = Strand.UNSTRANDED
    phase: Optional[int] = Field(default=None, ge=0, le=2)

    def overlaps(self, start: Optional[int], end: Optional[int]) -> bool:
        return (end is None or self.start_pos <= end) and (
            start is None or self.end_pos >= start
        )


class FeatureShort(BaseModel):
    """A transcript part or a feature with no page of its own."""

    feature_type: str
    uniquename: str
    name: Optional[str] = None
    location: ChromosomeLocation
    residues: str = ""


class ProteinDetails(BaseModel):
    uniquename: str
    sequence: str
    molecular_weight: Optional[float] = None
    average_residue_weight: Optional[float] = None
    charge_at_ph7: Optional[float] = None
    isoelectric_point: Optional[float] = None
    codon_adaptation_index: Optional[float] = None

    @property
    def length(self) -> int:
        return len(self.sequence.rstrip("*"))


class TranscriptDetails(BaseModel):
    uniquename: str
    transcript_type: str
    location: ChromosomeLocation
    parts: list[FeatureShort] = Field(default_factory=list)
    protein: Optional[ProteinDetails] = None
    cds_location: Optional[ChromosomeLocation] = None

    def exons(self) -> list[FeatureShort]:
        return [part for part in self.parts if part.feature_type == FeatureType.EXON.value]

    def spliced_sequence(
        self,
        include_introns: bool = False,
        include_5_prime_utr: bool = False,
        include_3_prime_utr: bool = False,
    ) -> str:
        """Concatenate part residues in transcript order."""
        five_prime = (FeatureType.FIVE_PRIME_UTR, FeatureType.FIVE_PRIME_UTR_INTRON)
        three_prime = (FeatureType.THREE_PRIME_UTR, FeatureType.THREE_PRIME_UTR_INTRON)
        residues = []
        for part in self.parts:
            part_type = FeatureType(part.feature_type)
            if part_type.is_intron and not include_introns:
                continue
            if part_type in five_prime and not include_5_prime_utr:
                continue
            if part_type in three_prime and not include_3_prime_utr:
                continue
            residues.append(part.residues)
        return "".join(residues)


class SynonymDetails(BaseModel):
    name: str
    synonym_type: str


class InterProMatchLocation(BaseModel):
    start: int
    end: int


class InterProMatch(BaseModel):
    """A pre-parsed InterPro/Pfam domain match."""

    id: str
    dbname: str
    name: Optional[str] = None
    description: Optional[str] = None
    interpro_id: Optional[str] = None
    interpro_name: Optional[str] = None
    interpro_description: Optional[str] = None
    locations: list[InterProMatchLocation] = Field(default_factory=list)


class TmDomainCoord(BaseModel):
    start: int
    end: int


class GeneDomainData(BaseModel):
    interpro_matches: list[InterProMatch] = Field(default_factory=list)
    tm_domain_coords: list[TmDomainCoord] = Field(default_factory=list)


class RfamAnnotation(BaseModel):
    """A pre-parsed ncRNA family assignment."""

    rfam_id: str
    name: Optional[str] = None
    description: Optional[str] = None
