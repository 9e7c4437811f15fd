"""Pipeline orchestration for the build and test commands."""

from __future__ import annotations

import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from . import api
from .analysis import AnalysisSource, SaveAnalysisSource
from .cargo import (
    Target,
    check_manifest_path,
    find_dependency_artifacts,
    generate_analysis,
    retrieve_metadata,
    target_from_metadata,
)
from .config import RsdocConfig, load_config
from .doctest import DocTestRunner, SynthesizedProgram, TestProgramSynthesizer, find_tests, save_tests
from .graph import create_documentation
from .logging import get_logger
from .models import Documentation
from .process import CapturedRunner, StreamedRunner, run_captured, run_streamed

DATA_FILENAME = "data.json"

AnalysisLoader = Callable[[Path], AnalysisSource]


@dataclass
class DocTestOutcome:
    """Result of a successful documentation test run."""

    crate_name: str
    tests: int
    verbatim: int
    scratch_dir: Optional[Path]


class Orchestrator:
    """Coordinates analysis, document generation and documentation tests."""

    def __init__(
        self,
        *,
        analysis_loader: AnalysisLoader | None = None,
        synthesizer: TestProgramSynthesizer | None = None,
        captured_runner: CapturedRunner = run_captured,
        streamed_runner: StreamedRunner = run_streamed,
        verbose: bool = False,
    ) -> None:
        self._analysis_loader = analysis_loader or SaveAnalysisSource.discover
        self.synthesizer = synthesizer or TestProgramSynthesizer()
        self._captured_runner = captured_runner
        self._streamed_runner = streamed_runner
        self.verbose = verbose
        self.logger = get_logger("orchestrator")

    def run_build(
        self,
        manifest_path: Path,
        *,
        output_dir: Path | None = None,
        workers: int | None = None,
    ) -> Path:
        """Generate documentation JSON for the crate and return the written file."""
        config, _, documentation = self.build_documentation(manifest_path, workers=workers)
        destination = output_dir or config.output_dir
        destination.mkdir(parents=True, exist_ok=True)
        data_path = destination / DATA_FILENAME
        data_path.write_text(api.to_json(documentation), encoding="utf-8")
        self.logger.info("Wrote %s", data_path)
        return data_path

    def build_documentation(
        self, manifest_path: Path, *, workers: int | None = None
    ) -> Tuple[RsdocConfig, Target, Documentation]:
        manifest_path = check_manifest_path(Path(manifest_path).expanduser().resolve())
        config = load_config(manifest_path.parent)
        target = self._resolve_target(manifest_path, config)

        self.logger.info("Generating save-analysis data for %s", target.crate_name)
        generate_analysis(
            manifest_path,
            verbose=self.verbose,
            cargo=config.cargo,
            runner=self._streamed_runner,
        )
        source = self._analysis_loader(config.root)
        documentation = create_documentation(
            source, target.crate_name, workers=workers or config.workers
        )
        return config, target, documentation

    def run_tests(
        self,
        manifest_path: Path,
        *,
        from_json: Path | None = None,
        keep_scratch: bool | None = None,
    ) -> DocTestOutcome:
        """Extract, compile and run every documentation test of the crate."""
        if from_json is None:
            config, target, documentation = self.build_documentation(manifest_path)
            manifest_path = config.root / "Cargo.toml"
        else:
            manifest_path = check_manifest_path(Path(manifest_path).expanduser().resolve())
            config = load_config(manifest_path.parent)
            target = self._resolve_target(manifest_path, config)
            documentation = api.parse(Path(from_json).read_text(encoding="utf-8"))

        keep = config.doctest.keep_scratch if keep_scratch is None else keep_scratch
        return self.run_doctests(documentation, target.crate_name, manifest_path, config, keep_scratch=keep)

    def run_doctests(
        self,
        documentation: Documentation,
        crate_name: str,
        manifest_path: Path,
        config: RsdocConfig,
        *,
        keep_scratch: bool = False,
    ) -> DocTestOutcome:
        programs = self.synthesize(documentation)
        verbatim = sum(1 for program in programs if not program.structured)
        if not programs:
            self.logger.info("No documentation tests found for %s", crate_name)
            return DocTestOutcome(crate_name=crate_name, tests=0, verbatim=0, scratch_dir=None)

        artifacts = find_dependency_artifacts(
            manifest_path, cargo=config.cargo, runner=self._captured_runner
        )
        runner = DocTestRunner(
            compiler=config.doctest.compiler,
            edition=config.doctest.edition,
            test_args=config.doctest.test_args,
            captured_runner=self._captured_runner,
            streamed_runner=self._streamed_runner,
        )

        scratch = Path(tempfile.mkdtemp(prefix="rsdoc-doctest-"))
        self.logger.debug("Writing doctests to %s", scratch)
        try:
            suite = save_tests(programs, scratch, crate_name)
            runner.run(suite, artifacts)
        except Exception:
            self.logger.warning("Doctest sources kept for inspection in %s", scratch)
            raise

        if keep_scratch:
            self.logger.info("Doctest sources kept in %s", scratch)
            return DocTestOutcome(crate_name, len(programs), verbatim, scratch)
        shutil.rmtree(scratch, ignore_errors=True)
        return DocTestOutcome(crate_name, len(programs), verbatim, None)

    def synthesize(self, documentation: Documentation) -> List[SynthesizedProgram]:
        snippets = find_tests(documentation)
        programs = [self.synthesizer.synthesize(snippet) for snippet in snippets]
        self.logger.info("Synthesized %d documentation tests", len(programs))
        return programs

    def _resolve_target(self, manifest_path: Path, config: RsdocConfig) -> Target:
        metadata = retrieve_metadata(manifest_path, cargo=config.cargo, runner=self._captured_runner)
        target = target_from_metadata(metadata)
        self.logger.debug("Documenting target %s (%s)", target.name, target.kind.value)
        return target


__all__ = ["DATA_FILENAME", "DocTestOutcome", "Orchestrator"]
