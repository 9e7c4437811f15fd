"""Jinja environment for the Rust sources generated by the doctest pipeline."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader

DEFAULT_TEMPLATES_DIR = Path(__file__).with_name("templates")


@lru_cache(maxsize=None)
def template_environment(templates_dir: Optional[Path] = None) -> Environment:
    directories = []
    if templates_dir is not None:
        directories.append(str(templates_dir))
    directories.append(str(DEFAULT_TEMPLATES_DIR))
    return Environment(
        loader=FileSystemLoader(directories),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


__all__ = ["DEFAULT_TEMPLATES_DIR", "template_environment"]
