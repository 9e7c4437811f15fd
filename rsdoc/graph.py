"""Builds the relationship-indexed document graph from an analysis snapshot."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Set, Tuple

from .analysis.base import AnalysisSource
from .errors import DuplicateDocumentError
from .kinds import CRATE_TYPE, PARENT_RELATION, display_type, relation_name
from .logging import get_logger
from .models import Data, DefId, DefKind, Definition, Document, Documentation
from .summary import plain_summary, summary

_Expansion = List[Tuple[Definition, Document]]


class DocumentGraphBuilder:
    """Walks the definition tree breadth-first and emits one document per retained definition.

    Each level of the tree is expanded on a thread pool. Workers only create
    documents for the children they enumerate; relationship edges on the parent
    documents are attached afterwards by the calling thread, so no document is
    mutated by more than one thread.
    """

    def __init__(self, source: AnalysisSource, *, workers: Optional[int] = None) -> None:
        self.source = source
        self.workers = workers
        self.logger = get_logger("graph")

    def build(self, crate_name: str) -> Documentation:
        root_id = self.source.resolve_root(crate_name)
        root_def = self.source.get_definition(root_id)
        self.logger.info("Building documentation graph for crate %s", crate_name)

        root = Document(type=CRATE_TYPE, id=crate_name, attributes={"docs": root_def.docs})
        included: List[Document] = []
        seen_defs: Set[DefId] = {root_id}
        seen_docs: Set[str] = {root.id}

        frontier: List[Tuple[Definition, Document]] = [(root_def, root)]
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            while frontier:
                expansions = executor.map(
                    lambda node: self._expand(node[0], root_id), frontier
                )
                next_frontier: List[Tuple[Definition, Document]] = []
                for (parent_def, parent_doc), children in zip(frontier, expansions):
                    top_level = parent_def.id == root_id
                    for child_def, child_doc in children:
                        if child_def.id in seen_defs:
                            raise DuplicateDocumentError(child_def.id)
                        if child_doc.id in seen_docs:
                            raise DuplicateDocumentError(child_doc.id)
                        seen_defs.add(child_def.id)
                        seen_docs.add(child_doc.id)
                        relation = relation_name(child_def.kind, top_level=top_level)
                        if relation is not None:
                            parent_doc.add_relationship(relation, child_doc.reference())
                        included.append(child_doc)
                        next_frontier.append((child_def, child_doc))
                frontier = next_frontier

        self.logger.info("Built %d documents for crate %s", len(included) + 1, crate_name)
        return Documentation(data=root, included=included)

    def _expand(self, parent: Definition, root_id: DefId) -> _Expansion:
        children: _Expansion = []
        for child_id in self.source.children_of(parent.id):
            child = self.source.get_definition(child_id)
            doc_type = display_type(child.kind)
            if doc_type is None:
                self.logger.debug("Skipping %s (%s)", child.qualified_name, child.kind.value)
                continue
            document = _document_for(child, doc_type)
            if child.kind is DefKind.MODULE:
                parent_ref = self._parent_reference(child, parent, root_id)
                if parent_ref is not None:
                    document.add_singular_relationship(PARENT_RELATION, parent_ref)
            children.append((child, document))
        return children

    def _parent_reference(
        self, child: Definition, enumerating: Definition, root_id: DefId
    ) -> Optional[Data]:
        parent_id = child.parent if child.parent is not None else enumerating.id
        if parent_id == root_id:
            return None
        if parent_id == enumerating.id:
            parent = enumerating
        else:
            parent = self.source.get_definition(parent_id)
        parent_type = display_type(parent.kind)
        if parent_type is None:
            return None
        return Data(type=parent_type, id=parent.qualified_name)


def _document_for(definition: Definition, doc_type: str) -> Document:
    return Document(
        type=doc_type,
        id=definition.qualified_name,
        attributes={
            "name": definition.name,
            "docs": definition.docs,
            "summary": summary(definition.docs),
            "plainSummary": plain_summary(definition.docs),
        },
    )


def create_documentation(
    source: AnalysisSource, crate_name: str, *, workers: Optional[int] = None
) -> Documentation:
    """Build the document graph for ``crate_name`` from ``source``."""
    return DocumentGraphBuilder(source, workers=workers).build(crate_name)


__all__ = ["DocumentGraphBuilder", "create_documentation"]
