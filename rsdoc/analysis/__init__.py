"""Analysis snapshot sources consumed by the document graph builder."""

from .base import AnalysisSource
from .memory import InMemoryAnalysisSource
from .save_analysis import SaveAnalysisSource

__all__ = ["AnalysisSource", "InMemoryAnalysisSource", "SaveAnalysisSource"]
