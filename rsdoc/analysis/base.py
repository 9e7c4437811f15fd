"""Base contract for analysis snapshot sources."""

from abc import ABC, abstractmethod
from typing import Sequence

from ..models import DefId, Definition


class AnalysisSource(ABC):
    """Read-only view over the compiler's semantic-analysis snapshot."""

    @abstractmethod
    def resolve_root(self, crate_name: str) -> DefId:
        """Return the root definition id of ``crate_name`` or raise CrateNotFound."""

    @abstractmethod
    def get_definition(self, def_id: DefId) -> Definition:
        """Return the definition for ``def_id`` or raise AnalysisLookupFailure."""

    @abstractmethod
    def children_of(self, def_id: DefId) -> Sequence[DefId]:
        """Return the direct children of ``def_id`` in declaration order."""
