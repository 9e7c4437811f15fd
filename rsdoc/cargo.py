"""Functions for retrieving package data from cargo."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable, List, Mapping, Optional

from .errors import CargoError, RsdocError
from .logging import get_logger
from .process import CapturedRunner, ProcessResult, run_captured, run_streamed

_PROGRESS_PREFIXES = ("Updating", "Compiling", "Finished", "Running", "Fresh", "Downloading")

logger = get_logger("cargo")


class TargetKind(str, Enum):
    LIBRARY = "lib"
    BINARY = "bin"


@dataclass(frozen=True)
class Target:
    """A cargo build target that can be documented."""

    name: str
    kind: TargetKind

    @property
    def crate_name(self) -> str:
        return self.name.replace("-", "_")


@dataclass(frozen=True)
class Artifact:
    """A compiled dependency: crate name and the file rustc should link."""

    name: str
    location: Path


def check_manifest_path(manifest_path: Path) -> Path:
    """Return ``manifest_path`` if it names an existing ``Cargo.toml`` file."""
    if manifest_path.name != "Cargo.toml":
        raise RsdocError("The --manifest-path must be a path to a Cargo.toml file")
    if not manifest_path.is_file():
        raise RsdocError(f"No Cargo.toml found at {manifest_path}")
    return manifest_path


def retrieve_metadata(
    manifest_path: Path,
    *,
    cargo: str = "cargo",
    runner: CapturedRunner = run_captured,
) -> Mapping[str, Any]:
    """Run ``cargo metadata`` for the crate and return the parsed JSON."""
    result = runner(
        [
            cargo,
            "metadata",
            "--manifest-path",
            str(manifest_path),
            "--no-deps",
            "--format-version",
            "1",
        ]
    )
    _raise_for_status(result)
    try:
        metadata = json.loads(result.stdout)
    except json.JSONDecodeError as exc:
        raise CargoError(result.returncode, result.stderr, message=f"Unexpected JSON from cargo metadata: {exc}") from exc
    if not isinstance(metadata, dict):
        raise CargoError(result.returncode, result.stderr, message="Unexpected JSON from cargo metadata")
    return metadata


def target_from_metadata(metadata: Mapping[str, Any]) -> Target:
    """Pick the target to document: the only one, else the first library, else the first binary."""
    packages = metadata.get("packages")
    if not isinstance(packages, list) or not packages or not isinstance(packages[0], dict):
        raise CargoError(None, message="cargo metadata did not list any packages")
    raw_targets = packages[0].get("targets")
    if not isinstance(raw_targets, list):
        raise CargoError(None, message="`targets` is not an array")

    targets: List[Target] = []
    for raw in raw_targets:
        name = raw.get("name") if isinstance(raw, dict) else None
        kinds = raw.get("kind") if isinstance(raw, dict) else None
        if not isinstance(name, str) or not isinstance(kinds, list):
            raise CargoError(None, message="malformed target in cargo metadata")
        if len(kinds) != 1:
            raise CargoError(None, message=f"expected one kind for target '{name}'")
        try:
            kind = TargetKind(kinds[0])
        except ValueError:
            continue
        targets.append(Target(name=name, kind=kind))

    if not targets:
        raise CargoError(None, message="no targets with supported kinds (`bin`, `lib`) found")
    if len(targets) == 1:
        return targets[0]

    libraries = [target for target in targets if target.kind is TargetKind.LIBRARY]
    chosen = libraries[0] if libraries else targets[0]
    description = "library" if chosen.kind is TargetKind.LIBRARY else "first binary"
    logger.warning(
        "Found more than one target to document. Documenting the %s: %s", description, chosen.name
    )
    return chosen


def generate_analysis(
    manifest_path: Path,
    *,
    verbose: bool = False,
    cargo: str = "cargo",
    report_progress: Optional[Callable[[str], None]] = None,
    runner: Callable[..., ProcessResult] = run_streamed,
) -> None:
    """Run ``cargo check`` with save-analysis enabled.

    Only cargo's progress lines are reported; everything else on stderr is
    kept for the error raised when cargo fails.
    """
    check_manifest_path(manifest_path)
    args = [cargo, "check", "--manifest-path", str(manifest_path)]
    if verbose:
        args.append("--verbose")
    env = dict(os.environ)
    env["RUSTFLAGS"] = "-Z save-analysis"
    progress = report_progress or (lambda line: logger.info("%s", line))

    def _filter(line: str) -> None:
        stripped = line.strip()
        if stripped.startswith(_PROGRESS_PREFIXES):
            progress(stripped)

    result = runner(args, env=env, on_stderr_line=_filter, discard_stdout=True)
    _raise_for_status(result)


def find_dependency_artifacts(
    manifest_path: Path,
    *,
    cargo: str = "cargo",
    runner: CapturedRunner = run_captured,
) -> List[Artifact]:
    """Build the crate and return every compiled artifact cargo reports."""
    result = runner(
        [cargo, "build", "--manifest-path", str(manifest_path), "--message-format", "json"]
    )
    if not result.ok:
        raise CargoError(
            result.returncode,
            result.stderr,
            message=f"cargo did not exit successfully: {result.returncode}",
        )
    artifacts = list(parse_artifact_messages(result.stdout.splitlines()))
    logger.debug("Discovered %d compiled artifacts", len(artifacts))
    return artifacts


def parse_artifact_messages(lines: Iterable[str]) -> Iterable[Artifact]:
    """Yield artifacts from cargo's line-delimited JSON build messages."""
    for line in lines:
        line = line.strip()
        if not line:
            continue
        try:
            message = json.loads(line)
        except json.JSONDecodeError as exc:
            raise CargoError(None, message=f"Unexpected JSON response from cargo build: {exc}") from exc
        if not isinstance(message, dict) or message.get("reason") != "compiler-artifact":
            continue
        target = message.get("target")
        if not isinstance(target, dict):
            continue
        kinds = target.get("kind")
        if isinstance(kinds, list) and "custom-build" in kinds:
            continue
        name = target.get("name")
        filenames = [item for item in message.get("filenames") or [] if isinstance(item, str)]
        if not isinstance(name, str) or not filenames:
            continue
        location = next((item for item in filenames if item.endswith(".rlib")), filenames[0])
        yield Artifact(name=name.replace("-", "_"), location=Path(location))


def _raise_for_status(result: ProcessResult) -> None:
    if not result.ok:
        raise CargoError(result.returncode, result.stderr)


__all__ = [
    "Artifact",
    "Target",
    "TargetKind",
    "check_manifest_path",
    "find_dependency_artifacts",
    "generate_analysis",
    "parse_artifact_messages",
    "retrieve_metadata",
    "target_from_metadata",
]
