"""Writes synthesized doctests to disk, compiles them with rustc and runs them."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..cargo import Artifact
from ..errors import DependencyResolutionFailure, DocTestCompileError, DocTestExecutionError
from ..logging import get_logger
from ..process import CapturedRunner, StreamedRunner, run_captured, run_streamed
from .rendering import template_environment
from .synthesizer import SynthesizedProgram

AGGREGATOR_FILE = "main.rs"
BINARY_NAME = "rsdoc-test"


@dataclass
class DocTestSuite:
    """A scratch directory holding one module per doctest plus the aggregator."""

    crate_name: str
    directory: Path
    modules: List[str] = field(default_factory=list)

    @property
    def aggregator(self) -> Path:
        return self.directory / AGGREGATOR_FILE

    @property
    def binary(self) -> Path:
        return self.directory / BINARY_NAME


def save_tests(
    programs: Sequence[SynthesizedProgram],
    directory: Path,
    crate_name: str,
    *,
    templates_dir: Optional[Path] = None,
) -> DocTestSuite:
    """Write every program to ``<name>.rs`` and an aggregator declaring them as modules."""
    directory.mkdir(parents=True, exist_ok=True)
    suite = DocTestSuite(crate_name=crate_name, directory=directory)
    used: Dict[str, int] = {}
    for program in programs:
        name = _unique_name(program.name, used)
        (directory / f"{name}.rs").write_text(program.source, encoding="utf-8")
        suite.modules.append(name)

    template = template_environment(templates_dir).get_template("main.rs.j2")
    suite.aggregator.write_text(
        template.render(crate_name=crate_name, modules=suite.modules), encoding="utf-8"
    )
    return suite


def find_search_path(artifacts: Sequence[Artifact]) -> Path:
    """Return the directory of the first artifact, used as rustc's ``-L`` path."""
    if not artifacts:
        raise DependencyResolutionFailure("No externs to get search path")
    parent = artifacts[0].location.parent
    if parent == artifacts[0].location:
        raise DependencyResolutionFailure("No parent for extern path")
    return parent


class DocTestRunner:
    """Compiles a :class:`DocTestSuite` into one test binary and executes it."""

    def __init__(
        self,
        *,
        compiler: str = "rustc",
        edition: Optional[str] = None,
        test_args: Sequence[str] = (),
        captured_runner: CapturedRunner = run_captured,
        streamed_runner: StreamedRunner = run_streamed,
    ) -> None:
        self.compiler = compiler
        self.edition = edition
        self.test_args = list(test_args)
        self._captured_runner = captured_runner
        self._streamed_runner = streamed_runner
        self.logger = get_logger("doctest.runner")

    def compile_command(self, suite: DocTestSuite, artifacts: Sequence[Artifact]) -> List[str]:
        search_path = find_search_path(artifacts)
        args = [
            self.compiler,
            AGGREGATOR_FILE,
            "--test",
            "-o",
            BINARY_NAME,
            "--cap-lints",
            "allow",
            "-L",
            str(search_path),
        ]
        if self.edition:
            args.extend(["--edition", self.edition])
        for artifact in artifacts:
            args.extend(["--extern", f"{artifact.name}={artifact.location}"])
        return args

    def compile(self, suite: DocTestSuite, artifacts: Sequence[Artifact]) -> Path:
        """Build the suite; compiler stderr is captured and only surfaced on failure."""
        args = self.compile_command(suite, artifacts)
        self.logger.info("Compiling %d doctests for %s", len(suite.modules), suite.crate_name)
        result = self._captured_runner(args, cwd=suite.directory)
        if not result.ok:
            raise DocTestCompileError(result.stderr)
        return suite.binary

    def execute(self, binary: Path) -> None:
        """Run the test binary, letting its output stream to the terminal."""
        self.logger.info("Running doctests")
        result = self._streamed_runner([str(binary), *self.test_args], cwd=binary.parent)
        if not result.ok:
            raise DocTestExecutionError(result.stderr)

    def run(self, suite: DocTestSuite, artifacts: Sequence[Artifact]) -> None:
        self.execute(self.compile(suite, artifacts))


def _unique_name(name: str, used: Dict[str, int]) -> str:
    count = used.get(name, 0)
    used[name] = count + 1
    if count == 0:
        return name
    return _unique_name(f"{name}_{count}", used)


__all__ = [
    "AGGREGATOR_FILE",
    "BINARY_NAME",
    "DocTestRunner",
    "DocTestSuite",
    "find_search_path",
    "save_tests",
]
