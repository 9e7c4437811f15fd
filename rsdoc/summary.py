"""Short summaries derived from documentation markdown."""

from __future__ import annotations

import re
from html.parser import HTMLParser
from typing import List

import markdown

_BLANK_LINE = re.compile(r"\n[ \t]*\n")
_BLOCK_END_TAGS = {"p", "h1", "h2", "h3", "h4", "h5", "h6"}
_MARKDOWN_EXTENSIONS = ["fenced_code"]


def summary(docs: str) -> str:
    """Return the first paragraph of ``docs`` with its markdown left intact."""
    text = docs.strip()
    match = _BLANK_LINE.search(text)
    if match is None:
        return text
    return text[: match.start()].rstrip()


def plain_summary(docs: str) -> str:
    """Return the first paragraph or heading of ``docs`` stripped of formatting.

    Inline code spans survive, delimited by backticks.
    """
    if not docs.strip():
        return ""
    rendered = markdown.markdown(docs, extensions=_MARKDOWN_EXTENSIONS)
    collector = _FirstBlockText()
    collector.feed(rendered)
    collector.close()
    return collector.text()


class _FirstBlockText(HTMLParser):
    """Collects rendered text until the first paragraph or heading closes."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self._parts: List[str] = []
        self._done = False
        self._in_pre = 0

    def handle_starttag(self, tag, attrs):  # type: ignore[no-untyped-def]
        if self._done:
            return
        if tag == "pre":
            self._in_pre += 1
        elif tag == "code" and not self._in_pre:
            self._parts.append("`")
        elif tag == "br":
            self._parts.append(" ")

    def handle_endtag(self, tag):  # type: ignore[no-untyped-def]
        if self._done:
            return
        if tag == "pre":
            self._in_pre = max(0, self._in_pre - 1)
        elif tag == "code" and not self._in_pre:
            self._parts.append("`")
        elif tag in _BLOCK_END_TAGS:
            self._done = True

    def handle_data(self, data):  # type: ignore[no-untyped-def]
        if self._done:
            return
        if not self._in_pre:
            data = data.replace("\n", " ")
        self._parts.append(data)

    def text(self) -> str:
        return "".join(self._parts).strip()


__all__ = ["plain_summary", "summary"]
