"""CLI entrypoints for rsdoc commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .errors import DocTestError, RsdocError
from .logging import configure_logging
from .orchestrator import Orchestrator


def _add_verbosity_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    default: object = argparse.SUPPRESS if suppress_default else False
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=default,
        help="Increase log verbosity for troubleshooting.",
    )
    group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=default,
        help="Only print warnings and errors.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rsdoc",
        description="Generate JSON documentation and run documentation tests for Rust crates.",
    )
    _add_verbosity_options(parser)
    parser.add_argument(
        "--manifest-path",
        default="./Cargo.toml",
        help="The path to the Cargo manifest of the crate being documented.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write log records to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser("build", help="Generate documentation JSON.")
    _add_verbosity_options(build_parser, suppress_default=True)
    build_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Directory for data.json (defaults to target/doc).",
    )
    build_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of threads used to walk the definition tree.",
    )

    test_parser = subparsers.add_parser("test", help="Run documentation tests for the crate.")
    _add_verbosity_options(test_parser, suppress_default=True)
    test_parser.add_argument(
        "--keep-scratch",
        action="store_true",
        default=None,
        help="Keep the generated test sources after a successful run.",
    )
    test_parser.add_argument(
        "--from-json",
        default=None,
        help="Read documentation from an existing data.json instead of re-analysing the crate.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for rsdoc commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    verbose = bool(args.verbose)
    configure_logging(
        verbose=verbose,
        quiet=bool(args.quiet),
        log_file=Path(args.log_file) if args.log_file else None,
    )
    orchestrator = Orchestrator(verbose=verbose)
    manifest_path = Path(args.manifest_path)

    if args.command == "build":
        try:
            data_path = orchestrator.run_build(
                manifest_path,
                output_dir=Path(args.output) if args.output else None,
                workers=args.workers,
            )
        except RsdocError as exc:
            parser.exit(1, f"rsdoc build failed: {exc}\nRun with --verbose for more details.\n")
        print(f"Documentation written to {_relativize(data_path)}")
    elif args.command == "test":
        try:
            outcome = orchestrator.run_tests(
                manifest_path,
                from_json=Path(args.from_json) if args.from_json else None,
                keep_scratch=args.keep_scratch,
            )
        except DocTestError as exc:
            parser.exit(1, f"{exc.output}\nrsdoc test failed: {type(exc).__name__}\n")
        except RsdocError as exc:
            parser.exit(1, f"rsdoc test failed: {exc}\nRun with --verbose for more details.\n")
        if outcome.tests == 0:
            print("No documentation tests found")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
