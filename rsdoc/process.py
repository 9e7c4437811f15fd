"""Child-process strategies used by the cargo and doctest pipelines.

``run_captured`` buffers both output streams until the child exits.
``run_streamed`` lets the child write to the terminal while stderr is also
kept for error reporting.
"""

from __future__ import annotations

import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Sequence

from .errors import RsdocError

LineSink = Callable[[str], None]
CapturedRunner = Callable[..., "ProcessResult"]
StreamedRunner = Callable[..., "ProcessResult"]


@dataclass(frozen=True)
class ProcessResult:
    args: Sequence[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_captured(
    args: Sequence[str],
    *,
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> ProcessResult:
    """Run ``args`` to completion, capturing stdout and stderr in full."""
    try:
        completed = subprocess.run(
            list(args),
            cwd=cwd,
            env=dict(env) if env is not None else None,
            capture_output=True,
            text=True,
            errors="replace",
        )
    except FileNotFoundError as exc:
        raise RsdocError(f"Unable to locate '{args[0]}'. Is it installed and on PATH?") from exc
    return ProcessResult(
        args=list(args),
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )


def run_streamed(
    args: Sequence[str],
    *,
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
    on_stderr_line: Optional[LineSink] = None,
    discard_stdout: bool = False,
) -> ProcessResult:
    """Run ``args`` with stdout inherited and stderr forwarded line by line.

    Every stderr line is handed to ``on_stderr_line`` (echoed to our own stderr
    by default) and also kept for the returned result.
    """
    sink = on_stderr_line or _echo_stderr
    try:
        process = subprocess.Popen(
            list(args),
            cwd=cwd,
            env=dict(env) if env is not None else None,
            stdout=subprocess.DEVNULL if discard_stdout else None,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )
    except FileNotFoundError as exc:
        raise RsdocError(f"Unable to locate '{args[0]}'. Is it installed and on PATH?") from exc

    captured: List[str] = []
    assert process.stderr is not None
    with process.stderr:
        for line in process.stderr:
            captured.append(line)
            sink(line)
    returncode = process.wait()
    return ProcessResult(args=list(args), returncode=returncode, stderr="".join(captured))


def _echo_stderr(line: str) -> None:
    sys.stderr.write(line)
    sys.stderr.flush()


__all__ = ["ProcessResult", "run_captured", "run_streamed"]
