"""Publish orchestration.

A publish decodes the upload envelope, then in a single database transaction
creates or updates the crate, checks the publisher's rights, records the
version with its dependencies and metadata, stores the tarball and appends the
index entry. The stored tarball is guarded: if the index append (or anything
after the upload) fails, the artifact is deleted and the transaction is rolled
back.
"""

from __future__ import annotations

import logging
from typing import Optional

from crates_api.config.settings import get_settings
from crates_api.db.session import run_in_session
from crates_api.errors import RegistryAuthorizationError, RegistryValidationError
from crates_api.models import PublishResponse, PublishWarnings
from crates_api.package_index import IndexEntry, LocalPackageIndex, PackageIndex
from crates_api.repo.metadata import BadgeRepository
from crates_api.storage import ArtifactStore, LocalArtifactStore
from crates_api.upload import ParsedUpload, parse_upload

from .crate_metadata import CrateMetadataService
from .crates import CrateDraft, CrateStore
from .encoding import encode_minimal
from .ownership import OwnershipService, Rights, require_user
from .versions import VersionLinker

LOGGER = logging.getLogger(__name__)


def _draft_from_upload(upload: ParsedUpload) -> CrateDraft:
    metadata = upload.metadata
    return CrateDraft(
        name=metadata.name,
        description=metadata.description,
        homepage=metadata.homepage,
        documentation=metadata.documentation,
        readme=metadata.readme,
        repository=metadata.repository,
        license=metadata.license,
    )


class PublishService:
    def __init__(
        self,
        store: Optional[CrateStore] = None,
        ownership: Optional[OwnershipService] = None,
        linker: Optional[VersionLinker] = None,
        metadata: Optional[CrateMetadataService] = None,
        artifacts: Optional[ArtifactStore] = None,
        index: Optional[PackageIndex] = None,
        badges: Optional[BadgeRepository] = None,
    ) -> None:
        self._store = store or CrateStore()
        self._ownership = ownership or OwnershipService(store=self._store)
        self._linker = linker or VersionLinker()
        self._metadata = metadata or CrateMetadataService()
        self._artifacts = artifacts or LocalArtifactStore()
        self._index = index or LocalPackageIndex()
        self._badges = badges or BadgeRepository()

    def publish(self, body: bytes, *, actor_id: Optional[int]) -> PublishResponse:
        settings = get_settings()
        upload = parse_upload(body, max_json_size=settings.max_upload_size)
        metadata = upload.metadata
        draft = _draft_from_upload(upload)

        def _publish(session):
            actor = require_user(actor_id, session=session)
            crate = self._store.create_or_update(
                draft,
                license_file_present=upload.license_file_present,
                actor=actor,
                session=session,
            )

            owners = self._ownership.owners(crate, session=session)
            if self._ownership.rights(owners, actor, session=session) < Rights.PUBLISH:
                raise RegistryAuthorizationError("crate name has already been claimed by another user")
            if crate.name != metadata.name:
                raise RegistryValidationError(f"crate was previously named `{crate.name}`")

            max_size = crate.max_upload_size or settings.max_upload_size
            if upload.content_length > max_size:
                raise RegistryValidationError(f"max upload size is: {max_size}")

            _, deps = self._linker.add_version(
                crate,
                metadata.vers,
                metadata.features,
                metadata.authors,
                metadata.deps,
                session=session,
            )
            self._metadata.update_keywords(crate, metadata.keywords, session=session)
            invalid_categories = self._metadata.update_categories(crate, metadata.categories, session=session)
            invalid_badges = self._metadata.update_badges(crate, metadata.badges, session=session)
            top = self._store.max_version(crate, session=session)

            checksum, guard = self._artifacts.upload(
                upload.tarball,
                crate.name,
                metadata.vers,
                max_size=max_size,
            )
            with guard:
                self._index.append(
                    IndexEntry(
                        name=crate.name,
                        vers=metadata.vers,
                        cksum=checksum,
                        deps=deps,
                        features=metadata.features,
                        yanked=False,
                    )
                )
                guard.disarm()

            LOGGER.info("Published %s %s by %s", crate.name, metadata.vers, actor.login)
            badges = self._badges.list_for_crate(crate_id=crate.id, session=session)
            return PublishResponse(
                krate=encode_minimal(crate, top, badges),
                warnings=PublishWarnings(
                    invalid_categories=invalid_categories,
                    invalid_badges=invalid_badges,
                ),
            )

        return run_in_session(_publish)


__all__ = ["PublishService"]
