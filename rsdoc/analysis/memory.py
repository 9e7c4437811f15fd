"""Dictionary-backed analysis source."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Sequence

from ..errors import AnalysisLookupFailure, CrateNotFound
from ..models import DefId, Definition
from .base import AnalysisSource


class InMemoryAnalysisSource(AnalysisSource):
    """Holds definitions in memory; children are derived from parent links."""

    def __init__(
        self,
        definitions: Iterable[Definition],
        roots: Mapping[str, DefId] | None = None,
    ) -> None:
        self._definitions: Dict[DefId, Definition] = {}
        self._children: Dict[DefId, List[DefId]] = {}
        for definition in definitions:
            if definition.id in self._definitions:
                raise ValueError(f"Definition id {definition.id!r} registered twice")
            self._definitions[definition.id] = definition
            self._children.setdefault(definition.id, [])
        for definition in self._definitions.values():
            if definition.parent is None:
                continue
            if definition.parent not in self._definitions:
                raise ValueError(
                    f"Definition {definition.id!r} points at unknown parent {definition.parent!r}"
                )
            self._children[definition.parent].append(definition.id)
        if roots is None:
            roots = {
                definition.qualified_name: definition.id
                for definition in self._definitions.values()
                if definition.parent is None
            }
        self._roots: Dict[str, DefId] = dict(roots)

    def resolve_root(self, crate_name: str) -> DefId:
        try:
            return self._roots[crate_name]
        except KeyError:
            raise CrateNotFound(crate_name) from None

    def get_definition(self, def_id: DefId) -> Definition:
        try:
            return self._definitions[def_id]
        except KeyError:
            raise AnalysisLookupFailure(def_id) from None

    def children_of(self, def_id: DefId) -> Sequence[DefId]:
        try:
            return list(self._children[def_id])
        except KeyError:
            raise AnalysisLookupFailure(def_id) from None

    def crate_names(self) -> List[str]:
        return sorted(self._roots)


__all__ = ["InMemoryAnalysisSource"]
