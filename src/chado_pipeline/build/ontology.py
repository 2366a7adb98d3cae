"""Ontology graph: ancestor closure along the configured relations."""

from collections import defaultdict, deque
from typing import Iterable

import structlog

from chado_pipeline.config.schema import InterestingParent
from chado_pipeline.errors import BuildError
from chado_pipeline.raw.models import RawTerm, RawTermRelationship

logger = structlog.get_logger()


class OntologyIndex:
    """
    Term graph built from raw term relationships.

    Ancestor walks follow only descendant_rel_names; has_part is followed
    only when the walk starts in one of has_part_cv_names. Each walk keeps
    its own visited state so malformed ontologies with cycles terminate.
    """

    def __init__(
        self,
        terms: dict[str, RawTerm],
        relationships: Iterable[RawTermRelationship],
        descendant_rel_names: Iterable[str],
        has_part_cv_names: Iterable[str],
    ):
        self.terms = terms
        self.descendant_rel_names = frozenset(descendant_rel_names)
        self.has_part_cv_names = frozenset(has_part_cv_names)
        self.parents: dict[str, list[tuple[str, str]]] = defaultdict(list)

        for rel in relationships:
            for termid in (rel.subject_termid, rel.object_termid):
                if termid not in terms:
                    raise BuildError(
                        f"term relationship {rel.subject_termid} {rel.rel_name} "
                        f"{rel.object_termid} refers to missing term {termid}"
                    )
            self.parents[rel.subject_termid].append((rel.object_termid, rel.rel_name))

        for termid in self.parents:
            self.parents[termid].sort()

        self._closure_cache: dict[str, dict[str, frozenset[str]]] = {}

    def allowed_rels(self, termid: str) -> frozenset[str]:
        cv_name = self.terms[termid].cv_name
        if cv_name in self.has_part_cv_names:
            return self.descendant_rel_names
        return self.descendant_rel_names - {"has_part"}

    def ancestors(self, termid: str) -> dict[str, frozenset[str]]:
        """
        Return every transitive ancestor of termid.

        Each ancestor maps to the relation names seen on the paths that
        reach it. The term itself is never included, even when a cycle
        leads back to it.
        """
        cached = self._closure_cache.get(termid)
        if cached is not None:
            return cached

        allowed = self.allowed_rels(termid)
        found: dict[str, frozenset[str]] = {}
        queue = deque([(termid, frozenset())])

        while queue:
            current, rels = queue.popleft()
            for parent, rel_name in self.parents.get(current, ()):
                if rel_name not in allowed:
                    continue
                path_rels = rels | {rel_name}
                existing = found.get(parent)
                # only revisit a node when we reached it by new relations
                if existing is not None and path_rels <= existing:
                    continue
                merged = path_rels if existing is None else existing | path_rels
                found[parent] = merged
                queue.append((parent, merged))

        found.pop(termid, None)
        result = dict(sorted(found.items()))
        self._closure_cache[termid] = result
        return result

    def self_and_ancestors(self, termid: str) -> list[str]:
        return [termid] + list(self.ancestors(termid))

    def is_self_or_descendant_of(self, termid: str, ancestor_termid: str) -> bool:
        return termid == ancestor_termid or ancestor_termid in self.ancestors(termid)

    def interesting_parents(
        self,
        termid: str,
        configured: Iterable[InterestingParent],
    ) -> list[str]:
        """Configured (termid, rel_name) pairs reachable from termid."""
        ancestors = self.ancestors(termid)
        result = set()
        for parent in configured:
            if parent.termid == termid:
                result.add(parent.termid)
            elif parent.termid in ancestors and parent.rel_name in ancestors[parent.termid]:
                result.add(parent.termid)
        return sorted(result)
