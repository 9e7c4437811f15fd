"""Loader for the compiler's save-analysis JSON snapshots."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from ..errors import AnalysisLookupFailure, CrateNotFound
from ..logging import get_logger
from ..models import DefId, DefKind, Definition
from .base import AnalysisSource

DEFAULT_SNAPSHOT_DIRS: Sequence[Path] = (
    Path("target") / "debug" / "deps" / "save-analysis",
    Path("target") / "rls" / "debug" / "save-analysis",
)

_KIND_MAP: Dict[str, DefKind] = {
    "Mod": DefKind.MODULE,
    "Struct": DefKind.STRUCT,
    "Enum": DefKind.ENUM,
    "Union": DefKind.UNION,
    "Trait": DefKind.TRAIT,
    "Function": DefKind.FUNCTION,
    "ForeignFunction": DefKind.FUNCTION,
    "Macro": DefKind.MACRO,
    "Type": DefKind.TYPE,
    "ExternType": DefKind.TYPE,
    "Static": DefKind.STATIC,
    "ForeignStatic": DefKind.STATIC,
    "Const": DefKind.CONST,
    "Field": DefKind.FIELD,
    "Tuple": DefKind.TUPLE,
    "TupleVariant": DefKind.TUPLE,
    "StructVariant": DefKind.TUPLE,
    "Method": DefKind.METHOD,
    "Local": DefKind.LOCAL,
}

_LOCAL_CRATE = 0


class SaveAnalysisSource(AnalysisSource):
    """Analysis source backed by one or more save-analysis JSON files.

    Definition ids are ``(crate_name, index)`` pairs. Only definitions local to
    each file's crate are loaded; references into other crates are dropped.
    """

    def __init__(self) -> None:
        self._raw: Dict[DefId, Mapping[str, Any]] = {}
        self._cache: Dict[DefId, Definition] = {}
        self._roots: Dict[str, DefId] = {}
        self.logger = get_logger("analysis")

    @classmethod
    def load(cls, directory: Path) -> "SaveAnalysisSource":
        """Load every ``*.json`` snapshot found in ``directory``."""
        source = cls()
        files = sorted(Path(directory).glob("*.json"))
        source.logger.debug("Loading %d save-analysis files from %s", len(files), directory)
        for path in files:
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
                raise AnalysisLookupFailure(str(path), f"unreadable snapshot: {exc}") from exc
            source.add_snapshot(payload)
        return source

    @classmethod
    def discover(cls, crate_root: Path) -> "SaveAnalysisSource":
        """Load the first default snapshot directory that exists under ``crate_root``."""
        for relative in DEFAULT_SNAPSHOT_DIRS:
            candidate = crate_root / relative
            if candidate.is_dir():
                return cls.load(candidate)
        searched = ", ".join(str(crate_root / relative) for relative in DEFAULT_SNAPSHOT_DIRS)
        raise AnalysisLookupFailure(str(crate_root), f"no save-analysis data in {searched}")

    def add_snapshot(self, payload: Mapping[str, Any]) -> None:
        crate_name = _crate_name(payload)
        for raw in _as_list(payload.get("defs")):
            if not isinstance(raw, dict):
                continue
            key = _local_id(crate_name, raw.get("id"))
            if key is None:
                continue
            self._raw[key] = raw
            if raw.get("kind") == "Mod" and raw.get("qualname") == "::":
                self._roots[crate_name] = key

    def resolve_root(self, crate_name: str) -> DefId:
        try:
            return self._roots[crate_name]
        except KeyError:
            raise CrateNotFound(crate_name) from None

    def get_definition(self, def_id: DefId) -> Definition:
        cached = self._cache.get(def_id)
        if cached is not None:
            return cached
        raw = self._raw.get(def_id)
        if raw is None:
            raise AnalysisLookupFailure(def_id)
        definition = self._lower(def_id, raw)
        self._cache[def_id] = definition
        return definition

    def children_of(self, def_id: DefId) -> Sequence[DefId]:
        raw = self._raw.get(def_id)
        if raw is None:
            raise AnalysisLookupFailure(def_id)
        crate_name = def_id[0]  # type: ignore[index]
        children: List[DefId] = []
        for child in _as_list(raw.get("children")):
            key = _local_id(crate_name, child)
            if key is not None:
                children.append(key)
        return children

    def crate_names(self) -> List[str]:
        return sorted(self._roots)

    def _lower(self, def_id: DefId, raw: Mapping[str, Any]) -> Definition:
        crate_name = def_id[0]  # type: ignore[index]
        kind_name = raw.get("kind")
        kind = _KIND_MAP.get(kind_name) if isinstance(kind_name, str) else None
        if kind is None:
            raise AnalysisLookupFailure(def_id, f"unsupported definition kind {kind_name!r}")
        qualname = raw.get("qualname")
        if not isinstance(qualname, str):
            raise AnalysisLookupFailure(def_id, "definition has no qualified name")
        name = raw.get("name")
        docs = raw.get("docs")
        return Definition(
            id=def_id,
            kind=kind,
            qualified_name=_qualify(crate_name, qualname),
            name=name if isinstance(name, str) else "",
            docs=docs if isinstance(docs, str) else "",
            parent=_local_id(crate_name, raw.get("parent")),
        )


def _crate_name(payload: Mapping[str, Any]) -> str:
    prelude = payload.get("prelude")
    crate_id = prelude.get("crate_id") if isinstance(prelude, dict) else None
    name = crate_id.get("name") if isinstance(crate_id, dict) else None
    if not isinstance(name, str) or not name:
        raise AnalysisLookupFailure("prelude", "snapshot does not name its crate")
    return name


def _local_id(crate_name: str, value: Any) -> Tuple[str, int] | None:
    if not isinstance(value, dict):
        return None
    if value.get("krate", _LOCAL_CRATE) != _LOCAL_CRATE:
        return None
    index = value.get("index")
    if not isinstance(index, int):
        return None
    return (crate_name, index)


def _qualify(crate_name: str, qualname: str) -> str:
    if qualname == "::":
        return crate_name
    if qualname.startswith("::"):
        return f"{crate_name}{qualname}"
    return f"{crate_name}::{qualname}"


def _as_list(value: Any) -> Iterable[Any]:
    return value if isinstance(value, list) else []


__all__ = ["DEFAULT_SNAPSHOT_DIRS", "SaveAnalysisSource"]
