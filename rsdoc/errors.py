"""Error types raised by rsdoc pipelines."""

from __future__ import annotations

from typing import Hashable


class RsdocError(RuntimeError):
    """Base class for failures that abort an rsdoc run."""


class CrateNotFound(RsdocError):
    """Raised when the requested crate is absent from the analysis snapshot."""

    def __init__(self, crate_name: str) -> None:
        super().__init__(f'Crate not found: "{crate_name}"')
        self.crate_name = crate_name


class AnalysisLookupFailure(RsdocError):
    """Raised when a definition id cannot be resolved mid-traversal."""

    def __init__(self, def_id: Hashable, reason: str = "unknown definition id") -> None:
        super().__init__(f"Analysis lookup failed for {def_id!r}: {reason}")
        self.def_id = def_id
        self.reason = reason


class DuplicateDocumentError(RsdocError):
    """Raised when traversal reaches the same definition or document id twice."""

    def __init__(self, doc_id: object) -> None:
        super().__init__(f"Duplicate document for {doc_id!r}")
        self.doc_id = doc_id


class CargoError(RsdocError):
    """Raised when a cargo command exits unsuccessfully."""

    def __init__(self, returncode: int | None, stderr: str = "", *, message: str | None = None) -> None:
        text = message or f"Cargo failed with status {returncode}. stderr:\n{stderr}"
        super().__init__(text)
        self.returncode = returncode
        self.stderr = stderr


class DependencyResolutionFailure(RsdocError):
    """Raised when no dependency artifacts can be found for the crate under test."""


class DocTestError(RsdocError):
    """Base class for documentation test failures carrying process output."""

    def __init__(self, output: str) -> None:
        super().__init__(output)
        self.output = output


class DocTestCompileError(DocTestError):
    """The synthesized test crate failed to compile."""


class DocTestExecutionError(DocTestError):
    """The compiled test binary exited unsuccessfully."""


__all__ = [
    "AnalysisLookupFailure",
    "CargoError",
    "CrateNotFound",
    "DependencyResolutionFailure",
    "DocTestCompileError",
    "DocTestError",
    "DocTestExecutionError",
    "DuplicateDocumentError",
    "RsdocError",
]
