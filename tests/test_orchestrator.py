"""Tests for rsdoc.orchestrator."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path

import pytest

from rsdoc import api
from rsdoc.errors import CrateNotFound, DocTestCompileError, DocTestExecutionError
from rsdoc.graph import create_documentation
from rsdoc.models import DefKind
from rsdoc.orchestrator import DATA_FILENAME, Orchestrator
from rsdoc.process import ProcessResult
from tests._fixtures.definitions import DefinitionTreeBuilder
from tests._fixtures.processes import FakeRunner

DOCTEST = "Adds numbers.\n\n```\nassert_eq!(pkg::add(1, 2), 3);\n```\n"


def _metadata(name: str = "pkg") -> str:
    return json.dumps({"packages": [{"name": name, "targets": [{"name": name, "kind": ["lib"]}]}]})


def _build_messages(tmp_path: Path) -> str:
    return json.dumps(
        {
            "reason": "compiler-artifact",
            "target": {"name": "pkg", "kind": ["lib"]},
            "filenames": [str(tmp_path / "target" / "debug" / "libpkg.rlib")],
        }
    )


@pytest.fixture
def crate(tmp_path: Path) -> Path:
    root = tmp_path / "crate"
    root.mkdir()
    manifest = root / "Cargo.toml"
    manifest.write_text('[package]\nname = "pkg"\n', encoding="utf-8")
    return manifest


@pytest.fixture
def scratch_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    root = tmp_path / "tmp"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    return root


@pytest.fixture
def runner(tmp_path: Path) -> FakeRunner:
    return FakeRunner(
        {
            ("cargo", "metadata"): ProcessResult(args=[], returncode=0, stdout=_metadata()),
            ("cargo", "build"): ProcessResult(args=[], returncode=0, stdout=_build_messages(tmp_path)),
        }
    )


def _orchestrator(tree: DefinitionTreeBuilder, runner: FakeRunner) -> Orchestrator:
    return Orchestrator(
        analysis_loader=lambda root: tree.source(),
        captured_runner=runner,
        streamed_runner=runner,
    )


def _commands(runner: FakeRunner) -> list[list[str]]:
    return [call["args"][:2] for call in runner.calls]


def test_run_build_writes_data_json(tree, runner, crate: Path, tmp_path: Path) -> None:
    tree.add(DefKind.FUNCTION, "add", docs=DOCTEST)
    output = tmp_path / "out"

    data_path = _orchestrator(tree, runner).run_build(crate, output_dir=output)

    assert data_path == output / DATA_FILENAME
    payload = json.loads(data_path.read_text(encoding="utf-8"))
    assert payload["data"]["id"] == "pkg"
    assert payload["data"]["relationships"]["functions"]["data"] == [
        {"type": "function", "id": "pkg::add"}
    ]
    assert _commands(runner) == [["cargo", "metadata"], ["cargo", "check"]]
    assert runner.calls[1]["env"]["RUSTFLAGS"] == "-Z save-analysis"


def test_run_build_defaults_to_target_doc(tree, runner, crate: Path) -> None:
    data_path = _orchestrator(tree, runner).run_build(crate)

    assert data_path == crate.parent.resolve() / "target" / "doc" / DATA_FILENAME


def test_run_build_honours_config(tree, runner, crate: Path) -> None:
    (crate.parent / ".rsdoc.yml").write_text("output_dir: docs\ncargo: my-cargo\n", encoding="utf-8")
    runner.responses[("my-cargo", "metadata")] = runner.responses[("cargo", "metadata")]

    data_path = _orchestrator(tree, runner).run_build(crate)

    assert data_path == crate.parent.resolve() / "docs" / DATA_FILENAME
    assert all(call["args"][0] == "my-cargo" for call in runner.calls)


def test_run_build_unknown_crate(tree, runner, crate: Path) -> None:
    runner.responses[("cargo", "metadata")] = ProcessResult(
        args=[], returncode=0, stdout=_metadata("other-crate")
    )

    with pytest.raises(CrateNotFound):
        _orchestrator(tree, runner).run_build(crate)


def test_run_tests_compiles_and_runs(tree, runner, crate: Path, scratch_root: Path) -> None:
    tree.add(DefKind.FUNCTION, "add", docs=DOCTEST)
    seen: dict[str, str] = {}

    def _inspect(args: list[str], cwd: Path | None) -> None:
        if args[0] == "rustc":
            seen["main"] = (cwd / "main.rs").read_text(encoding="utf-8")
            seen["test"] = (cwd / "pkg_add_0.rs").read_text(encoding="utf-8")

    runner.on_call = _inspect

    outcome = _orchestrator(tree, runner).run_tests(crate)

    assert outcome.tests == 1
    assert outcome.verbatim == 0
    assert outcome.scratch_dir is None
    assert seen["main"] == "extern crate pkg;\nmod pkg_add_0;\nfn main() {}\n"
    assert "extern crate pkg;" in seen["test"]
    assert "assert_eq!(pkg::add(1, 2), 3);" in seen["test"]
    assert _commands(runner)[-3:] == [
        ["cargo", "build"],
        ["rustc", "main.rs"],
        [str(runner.calls[-2]["cwd"] / "rsdoc-test")],
    ]
    assert list(scratch_root.iterdir()) == []


def test_run_tests_keeps_scratch_on_request(tree, runner, crate: Path, scratch_root: Path) -> None:
    tree.add(DefKind.FUNCTION, "add", docs=DOCTEST)

    outcome = _orchestrator(tree, runner).run_tests(crate, keep_scratch=True)

    assert outcome.scratch_dir is not None
    assert (outcome.scratch_dir / "pkg_add_0.rs").is_file()


def test_compile_failure_keeps_scratch(tree, runner, crate: Path, scratch_root: Path) -> None:
    tree.add(DefKind.FUNCTION, "add", docs=DOCTEST)
    runner.responses[("rustc",)] = ProcessResult(args=[], returncode=1, stderr="error[E0425]\n")

    with pytest.raises(DocTestCompileError) as excinfo:
        _orchestrator(tree, runner).run_tests(crate)

    assert "E0425" in excinfo.value.output
    (kept,) = scratch_root.iterdir()
    assert (kept / "main.rs").is_file()


def test_failing_doctest_binary(tree, runner, crate: Path, scratch_root: Path) -> None:
    tree.add(DefKind.FUNCTION, "add", docs=DOCTEST)

    def _fail_binary(args: list[str], cwd: Path | None) -> None:
        if args[0].endswith("rsdoc-test"):
            runner.responses[(args[0],)] = ProcessResult(
                args=args, returncode=101, stderr="test a_doc_test ... FAILED\n"
            )

    runner.on_call = _fail_binary

    with pytest.raises(DocTestExecutionError) as excinfo:
        _orchestrator(tree, runner).run_tests(crate)

    assert "FAILED" in excinfo.value.output


def test_no_doctests_skips_compilation(tree, runner, crate: Path) -> None:
    tree.add(DefKind.STRUCT, "Plain", docs="No examples here.")

    outcome = _orchestrator(tree, runner).run_tests(crate)

    assert outcome.tests == 0
    assert ["cargo", "build"] not in _commands(runner)


def test_run_tests_from_json(tree, runner, crate: Path, tmp_path: Path, scratch_root: Path) -> None:
    tree.add(DefKind.FUNCTION, "add", docs=DOCTEST)
    data_path = tmp_path / DATA_FILENAME
    data_path.write_text(api.to_json(create_documentation(tree.source(), "pkg")), encoding="utf-8")

    outcome = _orchestrator(tree, runner).run_tests(crate, from_json=data_path)

    assert outcome.tests == 1
    assert ["cargo", "check"] not in _commands(runner)
