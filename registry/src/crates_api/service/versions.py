"""Version creation and dependency linking."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import semver
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from crates_api.db.models import DEPENDENCY_KIND_NORMAL, Crate, Version
from crates_api.errors import CrateVersionExistsError, RegistryValidationError
from crates_api.models.new_crate import NewCrateDependency
from crates_api.package_index import IndexDependency
from crates_api.repo.crates import CrateRepository
from crates_api.repo.versions import DependencyRepository, VersionRepository

LOGGER = logging.getLogger(__name__)


def same_version(left: str, right: str) -> bool:
    """Semantic-version equality; build metadata does not distinguish versions."""

    return semver.Version.parse(left).replace(build=None) == semver.Version.parse(right).replace(build=None)


class VersionLinker:
    def __init__(
        self,
        versions: Optional[VersionRepository] = None,
        dependencies: Optional[DependencyRepository] = None,
        crates: Optional[CrateRepository] = None,
    ) -> None:
        self._versions = versions or VersionRepository()
        self._dependencies = dependencies or DependencyRepository()
        self._crates = crates or CrateRepository()

    def _resolve_target(self, name: str, *, session: Session) -> Crate:
        target = self._crates.get_by_name(name=name, session=session)
        if target is None:
            raise RegistryValidationError(f"no known crate named `{name}`")
        return target

    def add_version(
        self,
        crate: Crate,
        num: str,
        features: dict[str, list[str]],
        authors: list[str],
        dependencies: Sequence[NewCrateDependency] = (),
        *,
        session: Session,
    ) -> tuple[Version, list[IndexDependency]]:
        """Insert ``num`` for ``crate`` together with its dependency edges.

        Every dependency target is resolved before anything is written, so an
        unknown target leaves neither a version nor partial edges behind.
        """

        existing = self._versions.list_for_crate(crate_id=crate.id, session=session)
        if any(same_version(version.num, num) for version in existing):
            raise CrateVersionExistsError(f"crate version `{num}` is already uploaded")
        targets = [self._resolve_target(dep.name, session=session) for dep in dependencies]

        try:
            version = self._versions.insert(
                crate_id=crate.id,
                num=num,
                features=features,
                authors=authors,
                session=session,
            )
        except IntegrityError as exc:
            raise CrateVersionExistsError(f"crate version `{num}` is already uploaded") from exc

        encoded = [
            self._link(version, descriptor, target, session=session)
            for descriptor, target in zip(dependencies, targets)
        ]
        LOGGER.debug("Added %s %s with %d dependencies", crate.name, num, len(encoded))
        return version, encoded

    def add_dependency(
        self,
        version: Version,
        descriptor: NewCrateDependency,
        *,
        session: Session,
    ) -> IndexDependency:
        target = self._resolve_target(descriptor.name, session=session)
        return self._link(version, descriptor, target, session=session)

    def _link(
        self,
        version: Version,
        descriptor: NewCrateDependency,
        target: Crate,
        *,
        session: Session,
    ) -> IndexDependency:
        kind = descriptor.kind or DEPENDENCY_KIND_NORMAL
        self._dependencies.insert(
            version_id=version.id,
            crate_id=target.id,
            req=descriptor.version_req,
            optional=descriptor.optional,
            default_features=descriptor.default_features,
            features=list(descriptor.features),
            target=descriptor.target,
            kind=kind,
            session=session,
        )
        return IndexDependency(
            name=target.name,
            req=descriptor.version_req,
            features=list(descriptor.features),
            optional=descriptor.optional,
            default_features=descriptor.default_features,
            target=descriptor.target,
            kind=kind,
        )


__all__ = ["VersionLinker"]
