"""Tests for the save-analysis snapshot loader."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from rsdoc.analysis import SaveAnalysisSource
from rsdoc.errors import AnalysisLookupFailure, CrateNotFound
from rsdoc.graph import create_documentation
from rsdoc.models import Data, DefKind


def _def(index, kind, name, qualname, docs="", parent=None, children=()):
    return {
        "kind": kind,
        "id": {"krate": 0, "index": index},
        "name": name,
        "qualname": qualname,
        "docs": docs,
        "parent": None if parent is None else {"krate": 0, "index": parent},
        "children": [{"krate": 0, "index": child} for child in children],
    }


def _snapshot() -> dict:
    return {
        "prelude": {"crate_id": {"name": "example", "disambiguator": [0, 0]}},
        "defs": [
            _def(0, "Mod", "", "::", docs=" An example crate.\n", children=(1, 4, 5, 6)),
            _def(1, "Mod", "inner", "::inner", docs=" Inner.\n", parent=0, children=(2,)),
            _def(2, "Mod", "deeper", "::inner::deeper", parent=1, children=(3,)),
            _def(3, "Struct", "Thing", "::inner::deeper::Thing", parent=2),
            _def(4, "Struct", "Pair", "::Pair", parent=0, children=(7,)),
            _def(5, "TupleVariant", "V", "::E::V", parent=0),
            _def(6, "Function", "run", "::run", parent=0, children=(8,)),
            _def(7, "Field", "left", "::Pair::left", docs=" Left side.\n", parent=4),
            _def(8, "Local", "x", "x$1", parent=6),
            {"kind": "Struct", "id": {"krate": 1, "index": 0}, "qualname": "::Foreign"},
        ],
    }


def _write(directory: Path, payload: dict, name: str = "libexample.json") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_load_lowers_definitions(tmp_path: Path) -> None:
    _write(tmp_path, _snapshot())
    source = SaveAnalysisSource.load(tmp_path)

    root = source.resolve_root("example")
    definition = source.get_definition(("example", 3))

    assert root == ("example", 0)
    assert source.get_definition(root).qualified_name == "example"
    assert definition.kind is DefKind.STRUCT
    assert definition.qualified_name == "example::inner::deeper::Thing"
    assert definition.parent == ("example", 2)
    assert source.get_definition(("example", 5)).kind is DefKind.TUPLE
    assert source.get_definition(("example", 8)).qualified_name == "example::x$1"
    assert list(source.children_of(root)) == [
        ("example", 1),
        ("example", 4),
        ("example", 5),
        ("example", 6),
    ]
    assert source.crate_names() == ["example"]


def test_snapshot_feeds_the_graph_builder(tmp_path: Path) -> None:
    _write(tmp_path, _snapshot())

    documentation = create_documentation(SaveAnalysisSource.load(tmp_path), "example")
    by_id = {document.id: document for document in documentation.included}

    assert documentation.data.attributes["docs"] == " An example crate.\n"
    assert set(by_id) == {
        "example::inner",
        "example::inner::deeper",
        "example::inner::deeper::Thing",
        "example::Pair",
        "example::Pair::left",
        "example::run",
    }
    assert by_id["example::inner::deeper"].relationships["parent"] == Data(
        type="module", id="example::inner"
    )
    assert by_id["example::Pair::left"].attributes["summary"] == "Left side."


def test_unknown_crate_and_ids(tmp_path: Path) -> None:
    _write(tmp_path, _snapshot())
    source = SaveAnalysisSource.load(tmp_path)

    with pytest.raises(CrateNotFound):
        source.resolve_root("other")
    with pytest.raises(AnalysisLookupFailure):
        source.get_definition(("example", 42))
    with pytest.raises(AnalysisLookupFailure):
        source.children_of(("example", 42))


def test_unsupported_kind_is_a_lookup_failure(tmp_path: Path) -> None:
    payload = _snapshot()
    payload["defs"].append(_def(9, "Mystery", "m", "::m", parent=0))
    _write(tmp_path, payload)

    with pytest.raises(AnalysisLookupFailure):
        SaveAnalysisSource.load(tmp_path).get_definition(("example", 9))


def test_discover_prefers_cargo_deps_directory(tmp_path: Path) -> None:
    _write(tmp_path / "target" / "debug" / "deps" / "save-analysis", _snapshot())

    source = SaveAnalysisSource.discover(tmp_path)

    assert source.crate_names() == ["example"]


def test_discover_without_snapshot_fails(tmp_path: Path) -> None:
    with pytest.raises(AnalysisLookupFailure):
        SaveAnalysisSource.discover(tmp_path)


def test_unreadable_snapshot_is_reported(tmp_path: Path) -> None:
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(AnalysisLookupFailure):
        SaveAnalysisSource.load(tmp_path)
