"""Resolve raw extension rows into typed extension parts, and order them."""

from chado_pipeline.build.ontology import OntologyIndex
from chado_pipeline.config.schema import PipelineConfig
from chado_pipeline.errors import BuildError
from chado_pipeline.model.extension import (
    DomainExtRange,
    ExtPart,
    GeneExtRange,
    GeneProductExtRange,
    MiscExtRange,
    PromoterGeneExtRange,
    SummaryResiduesExtRange,
    TermExtRange,
)
from chado_pipeline.raw.models import RawExtensionPart

_SIMPLE_RANGES = {
    "misc": MiscExtRange,
    "domain": DomainExtRange,
    "gene_product": GeneProductExtRange,
}


class ExtensionResolver:
    """Turns RawExtensionPart rows into ExtPart values for one build."""

    def __init__(
        self,
        config: PipelineConfig,
        ontology: OntologyIndex,
        feature_uniquenames: set[str],
    ):
        self.config = config
        self.ontology = ontology
        self.feature_uniquenames = feature_uniquenames
        order = config.extension_relation_order
        self._order_index = {name: i for i, name in enumerate(order.relation_order)}
        self._last_index = {name: i for i, name in enumerate(order.always_last)}

    def display_name(self, rel_name: str, annotated_termid: str) -> str:
        """
        Configured display text for a relation.

        A name restricted with if_descendant_of wins over an unrestricted one
        when the annotated term descends from it.
        """
        fallback = None
        for names in self.config.extension_display_names:
            if names.rel_name != rel_name:
                continue
            if names.if_descendant_of is None:
                fallback = fallback or names.display_name
            elif self.ontology.is_self_or_descendant_of(annotated_termid, names.if_descendant_of):
                return names.display_name
        return fallback or rel_name.replace("_", " ")

    def reciprocal_display_name(self, rel_name: str, annotated_termid: str):
        for names in self.config.extension_display_names:
            if names.rel_name != rel_name or names.reciprocal_display is None:
                continue
            if names.if_descendant_of is None or self.ontology.is_self_or_descendant_of(
                annotated_termid, names.if_descendant_of
            ):
                return names.reciprocal_display
        return None

    def resolve(self, raw_parts: list[RawExtensionPart], annotated_termid: str) -> list[ExtPart]:
        parts = []
        for raw_part in sorted(raw_parts, key=lambda p: p.rank):
            parts.append(
                ExtPart(
                    rel_type_name=raw_part.rel_name,
                    rel_type_display_name=self.display_name(raw_part.rel_name, annotated_termid),
                    ext_range=self._make_range(raw_part),
                )
            )
        return self.sort_parts(parts)

    def _make_range(self, raw_part: RawExtensionPart):
        value = raw_part.range_value
        if raw_part.range_type in ("gene", "promoter_gene"):
            if value not in self.feature_uniquenames:
                raise BuildError(
                    f"extension of annotation {raw_part.annotation_id} refers to "
                    f"missing feature {value}"
                )
            if raw_part.range_type == "gene":
                return GeneExtRange(value=value)
            return PromoterGeneExtRange(value=value)
        if raw_part.range_type == "term":
            if value not in self.ontology.terms:
                raise BuildError(
                    f"extension of annotation {raw_part.annotation_id} refers to "
                    f"missing term {value}"
                )
            return TermExtRange(value=value)
        if raw_part.range_type == "residue":
            return SummaryResiduesExtRange(value=[value])
        if raw_part.range_type in _SIMPLE_RANGES:
            return _SIMPLE_RANGES[raw_part.range_type](value=value)
        raise BuildError(
            f"unknown extension range type {raw_part.range_type!r} in annotation "
            f"{raw_part.annotation_id}"
        )

    def part_sort_key(self, part: ExtPart) -> tuple:
        # configured order first, then unlisted relations, then always_last
        rel_name = part.rel_type_name
        if rel_name in self._last_index:
            position = (2, self._last_index[rel_name])
        elif rel_name in self._order_index:
            position = (0, self._order_index[rel_name])
        else:
            position = (1, 0)
        return position + (rel_name, part.ext_range.type, part.ext_range.sort_value())

    def sort_parts(self, parts: list[ExtPart]) -> list[ExtPart]:
        return sorted(parts, key=self.part_sort_key)
