"""Append-only package index laid out like the cargo registry index."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Protocol

from crates_api.config.settings import get_settings
from crates_api.errors import IndexAppendError

LOGGER = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_INDEX_ROOT = PROJECT_ROOT / "var" / "registry" / "index"


@dataclass(frozen=True)
class IndexDependency:
    name: str
    req: str
    features: list[str] = field(default_factory=list)
    optional: bool = False
    default_features: bool = True
    target: Optional[str] = None
    kind: str = "normal"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "req": self.req,
            "features": list(self.features),
            "optional": self.optional,
            "default_features": self.default_features,
            "target": self.target,
            "kind": self.kind,
        }


@dataclass(frozen=True)
class IndexEntry:
    name: str
    vers: str
    cksum: str
    deps: list[IndexDependency] = field(default_factory=list)
    features: dict[str, list[str]] = field(default_factory=dict)
    yanked: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "vers": self.vers,
            "deps": [dep.to_dict() for dep in self.deps],
            "cksum": self.cksum,
            "features": {key: list(value) for key, value in self.features.items()},
            "yanked": self.yanked,
        }


class PackageIndex(Protocol):
    def append(self, entry: IndexEntry) -> None:
        ...


def index_relative_path(name: str) -> str:
    lowered = name.lower()
    if len(lowered) == 1:
        return f"1/{lowered}"
    if len(lowered) == 2:
        return f"2/{lowered}"
    if len(lowered) == 3:
        return f"3/{lowered[0]}/{lowered}"
    return f"{lowered[0:2]}/{lowered[2:4]}/{lowered}"


def get_index_root() -> Path:
    configured = get_settings().index_root
    root = Path(configured) if configured else DEFAULT_INDEX_ROOT
    root = root.expanduser().resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


class LocalPackageIndex:
    """Writes one JSON line per published version into a directory tree."""

    def __init__(self, root: Path | None = None) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        if self._root is None:
            return get_index_root()
        self._root.mkdir(parents=True, exist_ok=True)
        return self._root

    def path_for(self, name: str) -> Path:
        return self.root / index_relative_path(name)

    def entries(self, name: str) -> list[dict[str, Any]]:
        path = self.path_for(name)
        if not path.exists():
            return []
        with path.open("r", encoding="utf-8") as handle:
            return [json.loads(line) for line in handle if line.strip()]

    def append(self, entry: IndexEntry) -> None:
        path = self.path_for(entry.name)
        try:
            if any(existing.get("vers") == entry.vers for existing in self.entries(entry.name)):
                raise IndexAppendError(
                    f"index already contains `{entry.name}` version `{entry.vers}`"
                )
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(entry.to_dict(), separators=(",", ":")))
                handle.write("\n")
        except OSError as exc:
            raise IndexAppendError(
                f"could not add crate `{entry.name}` to the index"
            ) from exc
        LOGGER.info("Indexed %s %s", entry.name, entry.vers)


__all__ = [
    "IndexDependency",
    "IndexEntry",
    "LocalPackageIndex",
    "PackageIndex",
    "get_index_root",
    "index_relative_path",
]
