"""Error taxonomy shared by the registry core and its collaborators."""

from __future__ import annotations


class RegistryError(Exception):
    """Base error for registry operations."""


class RegistryValidationError(RegistryError):
    """Raised when caller-supplied data is rejected; never retried."""


class RegistryNotFoundError(RegistryError):
    """Raised when a crate, version, user, team or owner lookup misses."""


class RegistryAuthorizationError(RegistryError):
    """Raised when the acting identity lacks rights on a crate."""


class RegistryExternalError(RegistryError):
    """Raised when the artifact store or package index fails."""


class ReservedCrateNameError(RegistryValidationError):
    """Raised when publishing under a reserved crate name."""


class CrateVersionExistsError(RegistryValidationError):
    """Raised when a version number is already uploaded for a crate."""


class MissingMetadataError(RegistryValidationError):
    """Raised when an upload omits required metadata fields."""

    def __init__(self, fields: list[str]) -> None:
        self.fields = list(fields)
        super().__init__(
            "missing or empty metadata fields: {}. Please see "
            "http://doc.crates.io/manifest.html#package-metadata for how to "
            "upload metadata".format(", ".join(self.fields))
        )


class ArtifactStoreError(RegistryExternalError):
    """Raised when an artifact cannot be written, located or removed."""


class IndexAppendError(RegistryExternalError):
    """Raised when an entry cannot be appended to the package index."""


__all__ = [
    "ArtifactStoreError",
    "CrateVersionExistsError",
    "IndexAppendError",
    "MissingMetadataError",
    "RegistryAuthorizationError",
    "RegistryError",
    "RegistryExternalError",
    "RegistryNotFoundError",
    "RegistryValidationError",
    "ReservedCrateNameError",
]
