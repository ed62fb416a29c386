"""Decoding of the binary publish envelope.

The body is ``u32 LE json length | json metadata | u32 LE tarball length |
tarball``. Decoding checks structure and the required metadata fields; crate
level rules (licenses, URLs, reserved names) are applied by the crate store.
"""

from __future__ import annotations

import json
import struct
from dataclasses import dataclass

import semver
from pydantic import ValidationError

from crates_api.errors import MissingMetadataError, RegistryValidationError
from crates_api.models.new_crate import NewCrate
from crates_api.naming import valid_feature_name, valid_keyword, valid_name

MAX_KEYWORDS = 5
MAX_CATEGORIES = 5

_U32 = struct.Struct("<I")


@dataclass(frozen=True)
class ParsedUpload:
    metadata: NewCrate
    tarball: bytes
    content_length: int

    @property
    def license_file_present(self) -> bool:
        return bool(self.metadata.license_file)


def _read_u32(body: bytes, offset: int, what: str) -> int:
    if len(body) < offset + _U32.size:
        raise RegistryValidationError(f"invalid upload request: missing {what} length")
    return _U32.unpack_from(body, offset)[0]


def _empty(value: str | None) -> bool:
    return not value


def missing_fields(metadata: NewCrate) -> list[str]:
    missing: list[str] = []
    if _empty(metadata.description):
        missing.append("description")
    if _empty(metadata.license) and _empty(metadata.license_file):
        missing.append("license")
    if not metadata.authors or all(not author for author in metadata.authors):
        missing.append("authors")
    return missing


def validate_metadata(metadata: NewCrate) -> None:
    if not valid_name(metadata.name):
        raise RegistryValidationError(f"invalid crate name: `{metadata.name}`")
    try:
        semver.Version.parse(metadata.vers)
    except ValueError as exc:
        raise RegistryValidationError(f"invalid version: `{metadata.vers}`") from exc
    for feature, enables in metadata.features.items():
        if not valid_feature_name(feature):
            raise RegistryValidationError(f"invalid feature name: `{feature}`")
        for item in enables:
            if not valid_feature_name(item):
                raise RegistryValidationError(f"invalid feature name: `{item}`")
    for dep in metadata.deps:
        if not valid_name(dep.name):
            raise RegistryValidationError(f"invalid dependency name: `{dep.name}`")
        for item in dep.features:
            if not valid_feature_name(item):
                raise RegistryValidationError(f"invalid feature name: `{item}`")
    if len(metadata.keywords) > MAX_KEYWORDS:
        raise RegistryValidationError(f"expected at most {MAX_KEYWORDS} keywords per crate")
    for keyword in metadata.keywords:
        if not valid_keyword(keyword):
            raise RegistryValidationError(f"invalid keyword specified: `{keyword}`")
    if len(metadata.categories) > MAX_CATEGORIES:
        raise RegistryValidationError(f"expected at most {MAX_CATEGORIES} categories per crate")


def parse_upload(body: bytes, *, max_json_size: int) -> ParsedUpload:
    """Decode a publish request body.

    Every missing required field is reported in a single
    :class:`MissingMetadataError` rather than one at a time.
    """

    json_length = _read_u32(body, 0, "metadata")
    if json_length > max_json_size:
        raise RegistryValidationError(f"max upload size is: {max_json_size}")
    json_start = _U32.size
    json_end = json_start + json_length
    if len(body) < json_end:
        raise RegistryValidationError("invalid upload request: truncated metadata")
    try:
        text = body[json_start:json_end].decode("utf-8")
    except UnicodeDecodeError as exc:
        raise RegistryValidationError("json body was not valid utf-8") from exc
    try:
        metadata = NewCrate.model_validate_json(text)
    except ValidationError as exc:
        raise RegistryValidationError(f"invalid upload request: {exc}") from exc

    tarball_length = _read_u32(body, json_end, "tarball")
    tarball_start = json_end + _U32.size
    tarball = body[tarball_start:tarball_start + tarball_length]
    if len(tarball) != tarball_length:
        raise RegistryValidationError("invalid upload request: truncated tarball")

    missing = missing_fields(metadata)
    if missing:
        raise MissingMetadataError(missing)
    validate_metadata(metadata)
    return ParsedUpload(metadata=metadata, tarball=tarball, content_length=len(body))


def encode_upload(metadata: dict, tarball: bytes) -> bytes:
    """Build an envelope; the inverse of :func:`parse_upload`."""

    payload = json.dumps(metadata).encode("utf-8")
    return _U32.pack(len(payload)) + payload + _U32.pack(len(tarball)) + tarball


__all__ = [
    "MAX_CATEGORIES",
    "MAX_KEYWORDS",
    "ParsedUpload",
    "encode_upload",
    "missing_fields",
    "parse_upload",
    "validate_metadata",
]
