"""Mapping from definition kinds to document types and relation names."""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from .models import DefKind

CRATE_TYPE = "crate"
CHILD_RELATION_PREFIX = "child_"
PARENT_RELATION = "parent"

# Kinds missing from this table (union, macro, tuple, method, local) produce no documents.
_DISPLAY_TABLE: Dict[DefKind, Tuple[str, str]] = {
    DefKind.MODULE: ("module", "modules"),
    DefKind.STRUCT: ("struct", "structs"),
    DefKind.ENUM: ("enum", "enums"),
    DefKind.TRAIT: ("trait", "traits"),
    DefKind.FUNCTION: ("function", "functions"),
    DefKind.TYPE: ("type", "types"),
    DefKind.STATIC: ("static", "statics"),
    DefKind.CONST: ("const", "consts"),
    DefKind.FIELD: ("field", "fields"),
}


def display_type(kind: DefKind) -> Optional[str]:
    """Return the document type for ``kind`` or None when the kind is dropped."""
    entry = _DISPLAY_TABLE.get(kind)
    return entry[0] if entry else None


def relation_name(kind: DefKind, *, top_level: bool) -> Optional[str]:
    """Return the plural relation a parent uses to point at children of ``kind``."""
    entry = _DISPLAY_TABLE.get(kind)
    if entry is None:
        return None
    plural = entry[1]
    return plural if top_level else f"{CHILD_RELATION_PREFIX}{plural}"


def is_retained(kind: DefKind) -> bool:
    return kind in _DISPLAY_TABLE


__all__ = [
    "CHILD_RELATION_PREFIX",
    "CRATE_TYPE",
    "PARENT_RELATION",
    "display_type",
    "is_retained",
    "relation_name",
]
