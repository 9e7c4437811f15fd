from __future__ import annotations

import pytest

from tests._fixtures.definitions import DefinitionTreeBuilder
from tests._fixtures.processes import FakeRunner


@pytest.fixture
def tree() -> DefinitionTreeBuilder:
    """Provide a definition tree rooted at crate ``pkg``."""
    return DefinitionTreeBuilder()


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()
