"""Repositories for versions and their dependency edges."""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from crates_api.db.models import Crate, Dependency, Version
from crates_api.naming import canonicalize

from .common import _now


class VersionRepository:
    def list_for_crate(self, *, crate_id: int, session: Session) -> list[Version]:
        stmt = select(Version).where(Version.crate_id == crate_id)
        return list(session.execute(stmt).scalars().all())

    def list_for_crates(
        self,
        *,
        crate_ids: Iterable[int],
        session: Session,
        include_yanked: bool = True,
    ) -> dict[int, list[Version]]:
        ids = list(crate_ids)
        grouped: dict[int, list[Version]] = {crate_id: [] for crate_id in ids}
        if not ids:
            return grouped
        stmt = select(Version).where(Version.crate_id.in_(ids))
        if not include_yanked:
            stmt = stmt.where(Version.yanked.is_(False))
        for version in session.execute(stmt).scalars().all():
            grouped[version.crate_id].append(version)
        return grouped

    def insert(
        self,
        *,
        crate_id: int,
        num: str,
        features: dict[str, list[str]],
        authors: list[str],
        session: Session,
    ) -> Version:
        now = _now()
        version = Version(
            crate_id=crate_id,
            num=num,
            features=features,
            authors=authors,
            yanked=False,
            downloads=0,
            created_at=now,
            updated_at=now,
        )
        session.add(version)
        session.flush()
        return version

    def find_id_by_crate_name(self, *, crate_name: str, num: str, session: Session) -> int | None:
        stmt = (
            select(Version.id)
            .join(Crate, Crate.id == Version.crate_id)
            .where(Crate.canonical_name == canonicalize(crate_name), Version.num == num)
            .limit(1)
        )
        return session.execute(stmt).scalar()


class DependencyRepository:
    def insert(
        self,
        *,
        version_id: int,
        crate_id: int,
        req: str,
        optional: bool,
        default_features: bool,
        features: list[str],
        target: str | None,
        kind: str,
        session: Session,
    ) -> Dependency:
        dependency = Dependency(
            version_id=version_id,
            crate_id=crate_id,
            req=req,
            optional=optional,
            default_features=default_features,
            features=features,
            target=target,
            kind=kind,
        )
        session.add(dependency)
        session.flush()
        return dependency

    def reverse_dependencies(
        self,
        *,
        crate_id: int,
        offset: int,
        limit: int,
        session: Session,
    ) -> tuple[list[tuple[Dependency, str, int]], int]:
        """Edges pointing at ``crate_id`` from each dependent's newest non-yanked version."""

        latest = (
            select(func.max(Version.id).label("version_id"))
            .where(Version.yanked.is_(False))
            .group_by(Version.crate_id)
            .subquery()
        )
        stmt = (
            select(
                Dependency,
                Crate.name,
                Crate.downloads,
                func.count().over().label("total"),
            )
            .join(Version, Version.id == Dependency.version_id)
            .join(Crate, Crate.id == Version.crate_id)
            .where(
                Dependency.crate_id == crate_id,
                Dependency.version_id.in_(select(latest.c.version_id)),
            )
            .order_by(Crate.downloads.desc(), Crate.name.asc())
            .offset(offset)
            .limit(limit)
        )
        rows = session.execute(stmt).all()
        total = int(rows[0][3]) if rows else 0
        return [(row[0], row[1], row[2]) for row in rows], total
