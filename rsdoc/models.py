"""Core data models shared across rsdoc components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Hashable, Iterator, List, Optional, Union


class DefKind(str, Enum):
    """Closed set of definition kinds reported by the analysis snapshot."""

    MODULE = "module"
    STRUCT = "struct"
    ENUM = "enum"
    UNION = "union"
    TRAIT = "trait"
    FUNCTION = "function"
    MACRO = "macro"
    TYPE = "type"
    STATIC = "static"
    CONST = "const"
    FIELD = "field"
    TUPLE = "tuple"
    METHOD = "method"
    LOCAL = "local"


DefId = Hashable


@dataclass(frozen=True)
class Definition:
    """One semantic entity from the compiler's analysis snapshot."""

    id: DefId
    kind: DefKind
    qualified_name: str
    name: str
    docs: str = ""
    parent: Optional[DefId] = None


@dataclass(frozen=True)
class Data:
    """Relationship pointer to another document, by identity only."""

    type: str
    id: str


Relationship = Union[Data, List[Data]]


@dataclass
class Document:
    """Per-entity record of the document graph."""

    type: str
    id: str
    attributes: Dict[str, str] = field(default_factory=dict)
    relationships: Dict[str, Relationship] = field(default_factory=dict)

    def reference(self) -> Data:
        return Data(type=self.type, id=self.id)

    def add_relationship(self, relation: str, data: Data) -> None:
        """Append ``data`` to a to-many relation, merging with existing entries."""
        existing = self.relationships.setdefault(relation, [])
        if isinstance(existing, Data):
            raise ValueError(f"Relationship '{relation}' on {self.id} is singular")
        if data not in existing:
            existing.append(data)

    def add_singular_relationship(self, relation: str, data: Data) -> None:
        """Set a to-one relation. An existing relation of the same name is kept."""
        self.relationships.setdefault(relation, data)


@dataclass
class Documentation:
    """Root document plus the flat list of included documents."""

    data: Document
    included: List[Document] = field(default_factory=list)

    def documents(self) -> Iterator[Document]:
        yield self.data
        yield from self.included

    def find(self, doc_id: str) -> Optional[Document]:
        for document in self.documents():
            if document.id == doc_id:
                return document
        return None
