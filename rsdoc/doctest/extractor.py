"""Extraction of testable code blocks from documentation markdown."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from ..models import Document, Documentation

HOST_LANGUAGE = "rust"
HIDDEN_MARKER = "#"

_FENCE_OPEN = re.compile(r"^(?P<indent> {0,3})(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
_NON_IDENTIFIER = re.compile(r"[^0-9A-Za-z_]")


@dataclass(frozen=True)
class CodeSnippet:
    """Source text of one testable code block and where it came from."""

    document_id: str
    index: int
    source: str

    @property
    def crate_name(self) -> str:
        return self.document_id.split("::", 1)[0]

    @property
    def name(self) -> str:
        """Identifier usable as both a file stem and a module name."""
        raw = f"{self.document_id}_{self.index}".replace("::", "_")
        return _NON_IDENTIFIER.sub("_", raw)


def find_test_blocks(docs: str, *, language: str = HOST_LANGUAGE) -> List[str]:
    """Return the source of every fenced block tagged ``language`` or untagged.

    Hidden lines (``# code``) are revealed and escaped markers (``##``) are
    reduced to a single ``#``.
    """
    lines = docs.splitlines()
    blocks: List[str] = []
    index = 0
    while index < len(lines):
        match = _FENCE_OPEN.match(lines[index])
        index += 1
        if match is None:
            continue
        fence = match.group("fence")
        info = match.group("info").strip()
        if fence.startswith("`") and "`" in info:
            continue
        body, index = _read_fence_body(lines, index, fence, len(match.group("indent")))
        tag = info.split()[0] if info else ""
        if tag in ("", language):
            blocks.append("\n".join(_reveal(line) for line in body))
    return blocks


def extract_snippets(document: Document, *, language: str = HOST_LANGUAGE) -> List[CodeSnippet]:
    docs = document.attributes.get("docs", "")
    if not docs:
        return []
    return [
        CodeSnippet(document_id=document.id, index=number, source=block)
        for number, block in enumerate(find_test_blocks(docs, language=language))
    ]


def find_tests(
    documentation: Documentation, *, language: str = HOST_LANGUAGE
) -> List[CodeSnippet]:
    """Collect snippets from the root document and every included document."""
    return list(_iter_snippets(documentation.documents(), language))


def _iter_snippets(documents: Iterable[Document], language: str) -> Iterable[CodeSnippet]:
    for document in documents:
        yield from extract_snippets(document, language=language)


def _read_fence_body(
    lines: Sequence[str], start: int, fence: str, indent: int
) -> Tuple[List[str], int]:
    closing = re.compile(rf"^ {{0,3}}{re.escape(fence[0])}{{{len(fence)},}}[ \t]*$")
    body: List[str] = []
    index = start
    while index < len(lines):
        line = lines[index]
        index += 1
        if closing.match(line):
            break
        body.append(_dedent(line, indent))
    return body, index


def _dedent(line: str, indent: int) -> str:
    removable = len(line) - len(line.lstrip(" "))
    return line[min(indent, removable):]


def _reveal(line: str) -> str:
    stripped = line.lstrip()
    leading = line[: len(line) - len(stripped)]
    if stripped.startswith(HIDDEN_MARKER * 2):
        return leading + stripped[1:]
    if stripped.startswith(HIDDEN_MARKER + " "):
        return leading + stripped[2:]
    return line


__all__ = [
    "CodeSnippet",
    "HIDDEN_MARKER",
    "HOST_LANGUAGE",
    "extract_snippets",
    "find_test_blocks",
    "find_tests",
]
