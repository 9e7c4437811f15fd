"""Configuration loading for rsdoc (.rsdoc.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import RsdocError

CONFIG_FILENAME = ".rsdoc.yml"


class ConfigError(RsdocError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class DoctestConfig:
    """Compiler settings for documentation tests."""

    compiler: str = "rustc"
    edition: Optional[str] = None
    keep_scratch: bool = False
    test_args: List[str] = field(default_factory=list)


@dataclass
class RsdocConfig:
    """Represents the settings defined in .rsdoc.yml next to Cargo.toml."""

    root: Path
    output_dir: Path
    workers: Optional[int] = None
    cargo: str = "cargo"
    doctest: DoctestConfig = field(default_factory=DoctestConfig)


def load_config(config_path: Path) -> RsdocConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()
    default_output = root / "target" / "doc"

    if not config_file.exists():
        return RsdocConfig(root=root, output_dir=default_output)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    output_dir_str = _as_str(data.get("output_dir"))
    output_dir = root / output_dir_str if output_dir_str else default_output

    workers = _as_int(data.get("workers"))
    if workers is not None and workers < 1:
        raise ConfigError("workers must be a positive integer")

    doctest = DoctestConfig()
    doctest_data = _as_dict(data.get("doctest"))
    if doctest_data:
        doctest.compiler = _as_str(doctest_data.get("compiler")) or doctest.compiler
        doctest.edition = _as_str(doctest_data.get("edition"))
        doctest.keep_scratch = _as_bool(doctest_data.get("keep_scratch")) or False
        doctest.test_args = _as_str_list(doctest_data.get("test_args"))

    return RsdocConfig(
        root=root,
        output_dir=output_dir,
        workers=workers,
        cargo=_as_str(data.get("cargo")) or "cargo",
        doctest=doctest,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = ["CONFIG_FILENAME", "ConfigError", "DoctestConfig", "RsdocConfig", "load_config"]
