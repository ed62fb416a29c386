"""Artifact storage for uploaded ``.crate`` files."""

from __future__ import annotations

import hashlib
import logging
import re
from pathlib import Path
from typing import Callable, Optional, Protocol

from crates_api.config.settings import get_settings
from crates_api.errors import ArtifactStoreError, RegistryValidationError
from crates_api.naming import canonicalize

LOGGER = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_STORAGE_ROOT = PROJECT_ROOT / "var" / "registry" / "crates"

_SAFE_PATTERN = re.compile(r"[^A-Za-z0-9._+-]+")


def _safe_component(value: str) -> str:
    cleaned = _SAFE_PATTERN.sub("_", value.strip())
    cleaned = cleaned.strip("._-")
    return cleaned or "artifact"


def get_storage_root() -> Path:
    configured = get_settings().storage_root
    root = Path(configured) if configured else DEFAULT_STORAGE_ROOT
    root = root.expanduser().resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def artifact_relative_path(crate_name: str, version: str) -> str:
    safe_name = _safe_component(canonicalize(crate_name))
    safe_version = _safe_component(version)
    return f"{safe_name}/{safe_name}-{safe_version}.crate"


class UploadGuard:
    """Removes an uploaded artifact when its scope exits, unless disarmed.

    Use as a context manager around every step that must succeed for the
    artifact to be kept; call :meth:`disarm` once those steps are committed.
    """

    def __init__(self, cleanup: Callable[[], None], *, description: str = "artifact") -> None:
        self._cleanup: Optional[Callable[[], None]] = cleanup
        self._description = description

    def disarm(self) -> None:
        self._cleanup = None

    def release(self) -> None:
        cleanup, self._cleanup = self._cleanup, None
        if cleanup is None:
            return
        LOGGER.info("Removing %s after failed publish", self._description)
        try:
            cleanup()
        except Exception:
            LOGGER.warning("Failed to remove %s", self._description, exc_info=True)

    def __enter__(self) -> "UploadGuard":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.release()
        return False


class ArtifactStore(Protocol):
    def upload(
        self,
        data: bytes,
        crate_name: str,
        version: str,
        *,
        max_size: int,
    ) -> tuple[str, UploadGuard]:
        ...

    def location_for(self, crate_name: str, version: str) -> str | None:
        ...

    def delete(self, crate_name: str, version: str) -> None:
        ...


class LocalArtifactStore:
    """Stores artifacts under a filesystem root and serves them from a URL prefix."""

    def __init__(self, root: Path | None = None, *, base_url: str | None = None) -> None:
        self._root = root
        self._base_url = base_url

    @property
    def root(self) -> Path:
        if self._root is None:
            return get_storage_root()
        self._root.mkdir(parents=True, exist_ok=True)
        return self._root

    @property
    def base_url(self) -> str:
        base_url = self._base_url if self._base_url is not None else get_settings().artifact_base_url
        return base_url.rstrip("/")

    def path_for(self, crate_name: str, version: str) -> Path:
        return self.root / artifact_relative_path(crate_name, version)

    def upload(
        self,
        data: bytes,
        crate_name: str,
        version: str,
        *,
        max_size: int,
    ) -> tuple[str, UploadGuard]:
        if len(data) > max_size:
            raise RegistryValidationError(f"max upload size is: {max_size}")
        checksum = hashlib.sha256(data).hexdigest()
        path = self.path_for(crate_name, version)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            self._discard_partial(path)
            raise ArtifactStoreError(
                f"could not store crate `{crate_name}` version `{version}`"
            ) from exc
        guard = UploadGuard(
            lambda: self.delete(crate_name, version),
            description=f"artifact {crate_name}-{version}",
        )
        return checksum, guard

    def _discard_partial(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError:
            LOGGER.warning("Failed to remove partial artifact %s", path, exc_info=True)

    def location_for(self, crate_name: str, version: str) -> str | None:
        if not self.path_for(crate_name, version).exists():
            return None
        return f"{self.base_url}/{artifact_relative_path(crate_name, version)}"

    def delete(self, crate_name: str, version: str) -> None:
        path = self.path_for(crate_name, version)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise ArtifactStoreError(
                f"could not remove crate `{crate_name}` version `{version}`"
            ) from exc


__all__ = [
    "ArtifactStore",
    "LocalArtifactStore",
    "UploadGuard",
    "artifact_relative_path",
    "get_storage_root",
]
