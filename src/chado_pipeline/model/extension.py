"""Annotation extension parts and their typed ranges."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class GeneExtRange(BaseModel):
    type: Literal["gene_uniquename"] = "gene_uniquename"
    value: str

    def sort_value(self) -> str:
        return self.value


class PromoterGeneExtRange(BaseModel):
    type: Literal["promoter_gene_uniquename"] = "promoter_gene_uniquename"
    value: str

    def sort_value(self) -> str:
        return self.value


class SummaryGenesExtRange(BaseModel):
    """Collected gene groups, eg. "binds A and B, C" is [[A, B], [C]]."""

    type: Literal["summary_gene_uniquenames"] = "summary_gene_uniquenames"
    value: list[list[str]]

    def sort_value(self) -> str:
        return ",".join("+".join(group) for group in self.value)


class TermExtRange(BaseModel):
    type: Literal["termid"] = "termid"
    value: str

    def sort_value(self) -> str:
        return self.value


class SummaryTermsExtRange(BaseModel):
    type: Literal["summary_termids"] = "summary_termids"
    value: list[str]

    def sort_value(self) -> str:
        return ",".join(self.value)


class MiscExtRange(BaseModel):
    type: Literal["misc"] = "misc"
    value: str

    def sort_value(self) -> str:
        return self.value


class DomainExtRange(BaseModel):
    type: Literal["domain"] = "domain"
    value: str

    def sort_value(self) -> str:
        return self.value


class GeneProductExtRange(BaseModel):
    type: Literal["gene_product"] = "gene_product"
    value: str

    def sort_value(self) -> str:
        return self.value


class SummaryResiduesExtRange(BaseModel):
    type: Literal["summary_residues"] = "summary_residues"
    value: list[str]

    def sort_value(self) -> str:
        return ",".join(self.value)


ExtRange = Annotated[
    Union[
        GeneExtRange,
        PromoterGeneExtRange,
        SummaryGenesExtRange,
        TermExtRange,
        SummaryTermsExtRange,
        MiscExtRange,
        DomainExtRange,
        GeneProductExtRange,
        SummaryResiduesExtRange,
    ],
    Field(discriminator="type"),
]


class ExtPart(BaseModel):
    """
    One relation of an annotation extension.

    Equality ignores rel_type_display_name: two parts are the same if they
    have the same relation and the same range.
    """

    rel_type_name: str
    rel_type_display_name: str
    ext_range: ExtRange

    def key(self) -> tuple[str, str, str]:
        return (self.rel_type_name, self.ext_range.type, self.ext_range.sort_value())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExtPart):
            return NotImplemented
        return self.key() == other.key()

    def __hash__(self) -> int:
        return hash(self.key())

    def gene_uniquenames(self) -> list[str]:
        """Genes referenced by the range, in range order."""
        ext_range = self.ext_range
        if isinstance(ext_range, (GeneExtRange, PromoterGeneExtRange)):
            return [ext_range.value]
        if isinstance(ext_range, SummaryGenesExtRange):
            return [gene for group in ext_range.value for gene in group]
        return []

    def termids(self) -> list[str]:
        ext_range = self.ext_range
        if isinstance(ext_range, TermExtRange):
            return [ext_range.value]
        if isinstance(ext_range, SummaryTermsExtRange):
            return list(ext_range.value)
        return []


def extension_key(extension: list[ExtPart]) -> tuple:
    return tuple(part.key() for part in extension)
