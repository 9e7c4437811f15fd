"""Documentation JSON and documentation tests for Rust crates."""

from .api import parse, serialize, to_json
from .graph import DocumentGraphBuilder, create_documentation
from .models import Data, DefKind, Definition, Document, Documentation

__all__ = [
    "Data",
    "DefKind",
    "Definition",
    "Document",
    "DocumentGraphBuilder",
    "Documentation",
    "create_documentation",
    "parse",
    "serialize",
    "to_json",
]
