"""Documentation test pipeline: extraction, synthesis, compilation and execution."""

from .extractor import CodeSnippet, extract_snippets, find_test_blocks, find_tests
from .suite import DocTestRunner, DocTestSuite, find_search_path, save_tests
from .synthesizer import (
    Structured,
    SynthesizedProgram,
    TestProgramSynthesizer,
    Verbatim,
    preprocess,
)

__all__ = [
    "CodeSnippet",
    "DocTestRunner",
    "DocTestSuite",
    "Structured",
    "SynthesizedProgram",
    "TestProgramSynthesizer",
    "Verbatim",
    "extract_snippets",
    "find_search_path",
    "find_test_blocks",
    "find_tests",
    "preprocess",
    "save_tests",
]
