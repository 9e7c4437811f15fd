"""Tests for rsdoc.graph."""

from __future__ import annotations

from typing import Sequence

import pytest

from rsdoc.analysis import InMemoryAnalysisSource
from rsdoc.errors import AnalysisLookupFailure, CrateNotFound, DuplicateDocumentError
from rsdoc.graph import DocumentGraphBuilder, create_documentation
from rsdoc.models import Data, DefId, DefKind, Definition
from tests._fixtures.definitions import DefinitionTreeBuilder


def test_single_module_under_crate(tree: DefinitionTreeBuilder) -> None:
    tree.add(DefKind.MODULE, "m", docs="Mod docs")

    documentation = create_documentation(tree.source(), "pkg")

    assert documentation.data.type == "crate"
    assert documentation.data.id == "pkg"
    assert documentation.data.attributes == {"docs": "Top"}
    assert documentation.data.relationships["modules"] == [Data(type="module", id="pkg::m")]
    assert len(documentation.included) == 1
    module = documentation.included[0]
    assert (module.type, module.id) == ("module", "pkg::m")
    assert module.attributes["docs"] == "Mod docs"
    assert module.attributes["name"] == "m"
    assert module.attributes["summary"] == "Mod docs"
    assert module.attributes["plainSummary"] == "Mod docs"
    assert "parent" not in module.relationships


def test_tuples_and_locals_are_dropped(tree: DefinitionTreeBuilder) -> None:
    function = tree.add(DefKind.FUNCTION, "run")
    tree.add(DefKind.LOCAL, "run::x", parent=function)
    tree.add(DefKind.TUPLE, "Pair")
    tree.add(DefKind.METHOD, "run::helper", parent=function)

    documentation = create_documentation(tree.source(), "pkg")

    assert [document.id for document in documentation.included] == ["pkg::run"]
    assert set(documentation.data.relationships) == {"functions"}
    assert documentation.included[0].relationships == {}


def test_nested_documents_use_child_relations_and_parent_links(
    tree: DefinitionTreeBuilder,
) -> None:
    outer = tree.add(DefKind.MODULE, "outer")
    inner = tree.add(DefKind.MODULE, "outer::inner", parent=outer)
    tree.add(DefKind.STRUCT, "outer::inner::Thing", parent=inner)
    structure = tree.add(DefKind.STRUCT, "Top")
    tree.add(DefKind.FIELD, "Top::value", docs="A field.", parent=structure)

    documentation = create_documentation(tree.source(), "pkg")
    by_id = {document.id: document for document in documentation.included}

    assert set(documentation.data.relationships) == {"modules", "structs"}
    assert by_id["pkg::outer"].relationships == {
        "child_modules": [Data(type="module", id="pkg::outer::inner")]
    }
    assert by_id["pkg::outer::inner"].relationships == {
        "parent": Data(type="module", id="pkg::outer"),
        "child_structs": [Data(type="struct", id="pkg::outer::inner::Thing")],
    }
    assert by_id["pkg::Top"].relationships == {
        "child_fields": [Data(type="field", id="pkg::Top::value")]
    }
    assert "parent" not in by_id["pkg::outer::inner::Thing"].relationships


def test_siblings_of_the_same_kind_merge_into_one_relation(tree: DefinitionTreeBuilder) -> None:
    for name in ("a", "b", "c"):
        tree.add(DefKind.MODULE, name)
    tree.add(DefKind.CONST, "LIMIT")

    documentation = create_documentation(tree.source(), "pkg")

    assert documentation.data.relationships["modules"] == [
        Data(type="module", id="pkg::a"),
        Data(type="module", id="pkg::b"),
        Data(type="module", id="pkg::c"),
    ]
    assert documentation.data.relationships["consts"] == [Data(type="const", id="pkg::LIMIT")]


@pytest.mark.parametrize("workers", [1, 4])
def test_every_retained_definition_yields_exactly_one_document(workers: int) -> None:
    tree = DefinitionTreeBuilder()
    kinds = [DefKind.MODULE, DefKind.ENUM, DefKind.TRAIT, DefKind.TYPE, DefKind.STATIC]
    for index in range(10):
        module = tree.add(DefKind.MODULE, f"m{index}")
        for position, kind in enumerate(kinds):
            tree.add(kind, f"m{index}::item{position}", parent=module)

    documentation = DocumentGraphBuilder(tree.source(), workers=workers).build("pkg")
    ids = [document.id for document in documentation.included]

    assert len(ids) == len(set(ids)) == 60
    assert "pkg" not in ids


def test_unknown_crate_raises_crate_not_found(tree: DefinitionTreeBuilder) -> None:
    with pytest.raises(CrateNotFound) as excinfo:
        create_documentation(tree.source(), "missing")
    assert 'Crate not found: "missing"' in str(excinfo.value)


class _BrokenSource(InMemoryAnalysisSource):
    def children_of(self, def_id: DefId) -> Sequence[DefId]:
        children = list(super().children_of(def_id))
        if def_id == 1:
            children.append(999)
        return children


def test_lookup_failure_aborts_the_whole_build() -> None:
    definitions = [
        Definition(id=0, kind=DefKind.MODULE, qualified_name="pkg", name=""),
        Definition(id=1, kind=DefKind.MODULE, qualified_name="pkg::m", name="m", parent=0),
    ]
    source = _BrokenSource(definitions)

    with pytest.raises(AnalysisLookupFailure):
        create_documentation(source, "pkg")


class _RepeatingSource(InMemoryAnalysisSource):
    def children_of(self, def_id: DefId) -> Sequence[DefId]:
        if def_id == 2:
            return [1]
        return super().children_of(def_id)


def test_revisiting_a_definition_fails_loudly() -> None:
    definitions = [
        Definition(id=0, kind=DefKind.MODULE, qualified_name="pkg", name=""),
        Definition(id=1, kind=DefKind.MODULE, qualified_name="pkg::a", name="a", parent=0),
        Definition(id=2, kind=DefKind.MODULE, qualified_name="pkg::a::b", name="b", parent=1),
    ]

    with pytest.raises(DuplicateDocumentError):
        create_documentation(_RepeatingSource(definitions), "pkg")


def test_duplicate_qualified_names_fail_loudly(tree: DefinitionTreeBuilder) -> None:
    tree.add(DefKind.STRUCT, "Same")
    tree.add(DefKind.FUNCTION, "Same")

    with pytest.raises(DuplicateDocumentError):
        create_documentation(tree.source(), "pkg")
