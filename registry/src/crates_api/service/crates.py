"""Crate record store: validation, race-safe creation and metadata updates."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlsplit

import semver
from sqlalchemy.orm import Session

from crates_api.db.models import OWNER_KIND_USER, Crate, User
from crates_api.errors import RegistryNotFoundError, RegistryValidationError, ReservedCrateNameError
from crates_api.licenses import LICENSE_HELP, NON_STANDARD_LICENSE, LicenseExpressionError, validate_license
from crates_api.naming import canonicalize
from crates_api.repo.crates import CrateRepository
from crates_api.repo.owners import CrateOwnerRepository
from crates_api.repo.versions import VersionRepository

from .encoding import max_version as _max_version

LOGGER = logging.getLogger(__name__)

URL_FIELDS = ("homepage", "documentation", "repository")
ALLOWED_URL_SCHEMES = {"http", "https"}


@dataclass(frozen=True)
class CrateDraft:
    """Crate fields supplied by a publish; ``name`` is the requested display name."""

    name: str
    description: Optional[str] = None
    homepage: Optional[str] = None
    documentation: Optional[str] = None
    readme: Optional[str] = None
    repository: Optional[str] = None
    license: Optional[str] = None
    max_upload_size: Optional[int] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_url(value: Optional[str], field: str) -> None:
    if value is None:
        return
    try:
        parsed = urlsplit(value)
    except ValueError as exc:
        raise RegistryValidationError(f"`{field}` is not a valid url: `{value}`") from exc
    if not parsed.scheme:
        raise RegistryValidationError(f"`{field}` is not a valid url: `{value}`")
    if parsed.scheme.lower() not in ALLOWED_URL_SCHEMES:
        raise RegistryValidationError(f"`{field}` has an invalid url scheme: `{parsed.scheme}`")
    if not parsed.netloc:
        raise RegistryValidationError(f"`{field}` must have relative scheme data: {value}")


class CrateStore:
    def __init__(
        self,
        crates: Optional[CrateRepository] = None,
        owners: Optional[CrateOwnerRepository] = None,
        versions: Optional[VersionRepository] = None,
    ) -> None:
        self._crates = crates or CrateRepository()
        self._owners = owners or CrateOwnerRepository()
        self._versions = versions or VersionRepository()

    def find_by_name(self, name: str, *, session: Session) -> Crate:
        crate = self._crates.get_by_name(name=name, session=session)
        if crate is None:
            raise RegistryNotFoundError(f"crate `{name}` does not exist")
        return crate

    def validate(self, draft: CrateDraft, *, license_file_present: bool) -> CrateDraft:
        """Check URLs and the license, returning the draft with its stored license."""

        for field in URL_FIELDS:
            validate_url(getattr(draft, field), field)
        if draft.license:
            try:
                validate_license(draft.license)
            except LicenseExpressionError as exc:
                raise RegistryValidationError(f"{exc}; {LICENSE_HELP}") from exc
            return draft
        if license_file_present:
            return replace(draft, license=NON_STANDARD_LICENSE)
        return draft

    def ensure_name_not_reserved(self, name: str, *, session: Session) -> None:
        if self._crates.is_reserved(name=name, session=session):
            raise ReservedCrateNameError("cannot upload a crate with a reserved name")

    def create_or_update(
        self,
        draft: CrateDraft,
        *,
        license_file_present: bool,
        actor: User,
        session: Session,
    ) -> Crate:
        """Insert the crate or, when its canonical name already exists, update it.

        The insert is attempted first; only the writer whose insert returns a
        row records an initial owner, so concurrent first publishes end with a
        single owner. The display name and upload limit of an existing crate
        are never changed here.
        """

        draft = self.validate(draft, license_file_present=license_file_present)
        self.ensure_name_not_reserved(draft.name, session=session)

        canonical_name = canonicalize(draft.name)
        now = _utcnow()
        fields = {
            "description": draft.description,
            "homepage": draft.homepage,
            "documentation": draft.documentation,
            "readme": draft.readme,
            "repository": draft.repository,
            "license": draft.license,
        }
        crate_id = self._crates.insert_if_absent(
            values={
                **fields,
                "name": draft.name,
                "canonical_name": canonical_name,
                "max_upload_size": draft.max_upload_size,
                "downloads": 0,
                "created_at": now,
                "updated_at": now,
            },
            session=session,
        )
        if crate_id is not None:
            self._owners.insert(
                crate_id=crate_id,
                owner_id=actor.id,
                owner_kind=OWNER_KIND_USER,
                created_by=actor.id,
                session=session,
            )
            LOGGER.info("Created crate %s owned by %s", draft.name, actor.login)
            crate = self._crates.get_by_id(crate_id=crate_id, session=session)
        else:
            crate = self._crates.update_by_canonical_name(
                canonical_name=canonical_name,
                values={**fields, "updated_at": now},
                session=session,
            )
        if crate is None:
            raise RegistryNotFoundError(f"crate `{draft.name}` does not exist")
        return crate

    def max_version(self, crate: Crate, *, session: Session) -> semver.Version:
        versions = self._versions.list_for_crate(crate_id=crate.id, session=session)
        return _max_version(version.num for version in versions if not version.yanked)


__all__ = ["ALLOWED_URL_SCHEMES", "CrateDraft", "CrateStore", "URL_FIELDS", "validate_url"]
