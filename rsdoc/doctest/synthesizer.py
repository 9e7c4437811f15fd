"""Turns extracted snippets into standalone Rust test programs."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

import tree_sitter_rust
from tree_sitter import Language, Node, Parser

from ..logging import get_logger
from .extractor import CodeSnippet
from .rendering import template_environment

TEST_FUNCTION = "a_doc_test"
ENTRY_POINT = "main"
STD_CRATE = "std"

RUST_LANGUAGE = Language(tree_sitter_rust.language())

_ITEM_NODES = frozenset(
    {
        "associated_type",
        "attribute_item",
        "const_item",
        "empty_statement",
        "enum_item",
        "extern_crate_declaration",
        "foreign_mod_item",
        "function_item",
        "function_signature_item",
        "impl_item",
        "macro_definition",
        "macro_invocation",
        "mod_item",
        "static_item",
        "struct_item",
        "trait_item",
        "type_item",
        "union_item",
        "use_declaration",
    }
)
_COMMENT_NODES = frozenset({"line_comment", "block_comment"})


@dataclass(frozen=True)
class Structured:
    """Snippet that parsed as a sequence of top-level items."""

    items: Tuple[str, ...]
    crate_attributes: Tuple[str, ...] = ()
    has_extern_crate: bool = False
    has_entry_point: bool = False


@dataclass(frozen=True)
class Verbatim:
    """Snippet that could not be parsed as items; kept exactly as written."""

    text: str


ParsedSnippet = Union[Structured, Verbatim]


@dataclass(frozen=True)
class SynthesizedProgram:
    name: str
    source: str
    structured: bool


class TestProgramSynthesizer:
    """Wraps snippets in a ``#[test]`` function, injecting the crate under test.

    Structured snippets keep their items in order inside the test function,
    gain ``extern crate <crate>;`` unless they already declare an extern crate
    (or the crate is ``std``), and get a trailing ``main();`` when they define
    ``fn main``. Snippets that are not valid items are wrapped verbatim.
    """

    __test__ = False

    def __init__(self, templates_dir: Optional[Path] = None) -> None:
        self._env = template_environment(templates_dir)
        self._parser: Optional[Parser] = None
        self.logger = get_logger("doctest.synthesizer")

    def parse(self, source: str) -> ParsedSnippet:
        tree = self._get_parser().parse(source.encode("utf-8"))
        root = tree.root_node
        if root.has_error:
            return Verbatim(source)

        items: List[str] = []
        crate_attributes: List[str] = []
        has_extern_crate = False
        has_entry_point = False
        open_macro = False
        for node in root.children:
            # A `;` directly after an item macro terminates that macro.
            if open_macro and node.type in (";", "empty_statement"):
                items[-1] += ";"
                open_macro = False
                continue
            open_macro = node.type == "macro_invocation"
            if not node.is_named:
                continue
            if node.type == "inner_attribute_item":
                crate_attributes.append(_text(node))
                continue
            if node.type in _COMMENT_NODES:
                items.append(_text(node).rstrip("\n"))
                continue
            if not _is_item(node):
                return Verbatim(source)
            if node.type == "extern_crate_declaration":
                has_extern_crate = True
            elif node.type == "function_item" and _function_name(node) == ENTRY_POINT:
                has_entry_point = True
            items.append(_text(node))

        return Structured(
            items=tuple(items),
            crate_attributes=tuple(crate_attributes),
            has_extern_crate=has_extern_crate,
            has_entry_point=has_entry_point,
        )

    def render(self, parsed: ParsedSnippet, crate_name: str) -> str:
        if isinstance(parsed, Verbatim):
            template = self._env.get_template("verbatim.rs.j2")
            return template.render(test_name=TEST_FUNCTION, source=parsed.text)

        inject = not parsed.has_extern_crate and crate_name != STD_CRATE
        template = self._env.get_template("doctest.rs.j2")
        return template.render(
            test_name=TEST_FUNCTION,
            crate_attributes=parsed.crate_attributes,
            extern_crate=crate_name if inject else None,
            items=parsed.items,
            entry_point=ENTRY_POINT if parsed.has_entry_point else None,
        )

    def synthesize(
        self, snippet: CodeSnippet, crate_name: Optional[str] = None
    ) -> SynthesizedProgram:
        parsed = self.parse(snippet.source)
        if isinstance(parsed, Verbatim):
            self.logger.debug("Snippet %s is not a list of items; wrapping verbatim", snippet.name)
        source = self.render(parsed, crate_name or snippet.crate_name)
        return SynthesizedProgram(
            name=snippet.name,
            source=source,
            structured=isinstance(parsed, Structured),
        )

    def _get_parser(self) -> Parser:
        if self._parser is None:
            self._parser = Parser(RUST_LANGUAGE)
        return self._parser


def preprocess(source: str, crate_name: str) -> str:
    """Return the test program for a single snippet of ``crate_name``."""
    synthesizer = TestProgramSynthesizer()
    return synthesizer.render(synthesizer.parse(source), crate_name)


def _is_item(node: Node) -> bool:
    if node.type in _ITEM_NODES:
        return True
    # `assert!(true);` parses as an expression statement holding a macro call.
    if node.type == "expression_statement":
        children = node.named_children
        return len(children) == 1 and children[0].type == "macro_invocation"
    return False


def _function_name(node: Node) -> str:
    name = node.child_by_field_name("name")
    return _text(name) if name is not None else ""


def _text(node: Node) -> str:
    return node.text.decode("utf-8") if node.text is not None else ""


__all__ = [
    "ENTRY_POINT",
    "ParsedSnippet",
    "STD_CRATE",
    "Structured",
    "SynthesizedProgram",
    "TEST_FUNCTION",
    "TestProgramSynthesizer",
    "Verbatim",
    "preprocess",
]
