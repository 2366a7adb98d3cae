"""Flat records mirroring the rows of the curation database snapshot.

Each dataclass corresponds to one table of the snapshot. Coordinates in
RawFeatureLoc are 1-based and inclusive; strand is 1, -1 or 0.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class RawTerm:
    termid: str
    name: str
    cv_name: str
    definition: Optional[str] = None
    is_obsolete: bool = False


@dataclass(frozen=True)
class RawTermSynonym:
    termid: str
    name: str
    synonym_type: str = "exact"


@dataclass(frozen=True)
class RawTermRelationship:
    """subject_termid <rel_name> object_termid, eg. child is_a parent."""

    subject_termid: str
    object_termid: str
    rel_name: str


@dataclass(frozen=True)
class RawTermSubset:
    termid: str
    subset_name: str


@dataclass(frozen=True)
class RawTermXref:
    termid: str
    xref: str


@dataclass(frozen=True)
class RawPublication:
    uniquename: str
    title: Optional[str] = None
    citation: Optional[str] = None
    authors: Optional[str] = None
    abstract: Optional[str] = None
    publication_year: Optional[str] = None
    publication_date: Optional[str] = None
    canto_triage_status: Optional[str] = None
    canto_curator_role: Optional[str] = None
    canto_curator_name: Optional[str] = None
    canto_approved_date: Optional[str] = None
    canto_session_submitted_date: Optional[str] = None
    canto_added_date: Optional[str] = None


@dataclass(frozen=True)
class RawFeature:
    uniquename: str
    feature_type: str
    taxonid: int
    name: Optional[str] = None
    residues: Optional[str] = None


@dataclass(frozen=True)
class RawFeatureProp:
    feature_uniquename: str
    prop_type: str
    value: Optional[str] = None


@dataclass(frozen=True)
class RawFeatureLoc:
    feature_uniquename: str
    chromosome: str
    start_pos: int
    end_pos: int
    strand: int = 0
    phase: Optional[int] = None


@dataclass(frozen=True)
class RawFeatureRelationship:
    """subject <rel_name> object, eg. transcript part_of gene."""

    subject: str
    object: str
    rel_name: str
    evidence: Optional[str] = None
    reference: Optional[str] = None
    throughput: Optional[str] = None
    expression: Optional[str] = None


@dataclass(frozen=True)
class RawFeatureSynonym:
    feature_uniquename: str
    name: str
    synonym_type: str = "exact"
    is_current: bool = True


@dataclass(frozen=True)
class RawFeatureDbxref:
    feature_uniquename: str
    dbxref: str


@dataclass(frozen=True)
class RawAnnotation:
    """One feature_cvterm row with its properties folded in."""

    annotation_id: int
    feature_uniquename: str
    termid: str
    reference: Optional[str] = None
    is_not: bool = False
    evidence: Optional[str] = None
    assigned_by: Optional[str] = None
    throughput: Optional[str] = None
    date: Optional[str] = None
    residue: Optional[str] = None
    qualifiers: list[str] = field(default_factory=list)
    withs: list[str] = field(default_factory=list)
    froms: list[str] = field(default_factory=list)
    conditions: list[str] = field(default_factory=list)
    gene_ex_props: Optional[str] = None


@dataclass(frozen=True)
class RawExtensionPart:
    """
    One relation of an annotation extension.

    range_type is one of: gene, promoter_gene, term, misc, domain,
    gene_product, residue.
    """

    annotation_id: int
    rank: int
    rel_name: str
    range_type: str
    range_value: str


@dataclass(frozen=True)
class RawChadoprop:
    prop_type: str
    value: str
