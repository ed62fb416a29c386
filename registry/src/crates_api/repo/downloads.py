"""Repository for per-day version download counters."""

from __future__ import annotations

from datetime import date
from typing import Iterable

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from crates_api.db.models import Crate, Version, VersionDownload


class VersionDownloadRepository:
    def increment_existing(self, *, version_id: int, day: date, session: Session) -> int:
        result = session.execute(
            update(VersionDownload)
            .where(VersionDownload.version_id == version_id, VersionDownload.date == day)
            .values(downloads=VersionDownload.downloads + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def insert(self, *, version_id: int, day: date, session: Session) -> VersionDownload:
        row = VersionDownload(version_id=version_id, date=day, downloads=1, counted=0)
        session.add(row)
        session.flush()
        return row

    def list_recent(
        self,
        *,
        version_ids: Iterable[int],
        since: date,
        session: Session,
    ) -> list[VersionDownload]:
        ids = list(version_ids)
        if not ids:
            return []
        stmt = (
            select(VersionDownload)
            .where(VersionDownload.version_id.in_(ids), VersionDownload.date > since)
            .order_by(VersionDownload.date.asc(), VersionDownload.version_id.asc())
        )
        return list(session.execute(stmt).scalars().all())

    def daily_totals_excluding(
        self,
        *,
        crate_id: int,
        excluded_version_ids: Iterable[int],
        since: date,
        session: Session,
    ) -> list[tuple[date, int]]:
        excluded = list(excluded_version_ids)
        stmt = (
            select(VersionDownload.date, func.sum(VersionDownload.downloads))
            .join(Version, Version.id == VersionDownload.version_id)
            .where(Version.crate_id == crate_id, VersionDownload.date > since)
            .group_by(VersionDownload.date)
            .order_by(VersionDownload.date.asc())
        )
        if excluded:
            stmt = stmt.where(Version.id.not_in(excluded))
        return [(row[0], int(row[1] or 0)) for row in session.execute(stmt).all()]

    def list_uncounted(self, *, session: Session) -> list[VersionDownload]:
        stmt = select(VersionDownload).where(VersionDownload.downloads != VersionDownload.counted)
        return list(session.execute(stmt).scalars().all())

    def apply_rollup(self, *, row: VersionDownload, session: Session) -> int:
        """Fold the uncounted part of ``row`` into its version and crate totals."""

        delta = row.downloads - row.counted
        if delta <= 0:
            return 0
        session.execute(
            update(Version)
            .where(Version.id == row.version_id)
            .values(downloads=Version.downloads + delta)
            .execution_options(synchronize_session=False)
        )
        crate_id = select(Version.crate_id).where(Version.id == row.version_id).scalar_subquery()
        session.execute(
            update(Crate)
            .where(Crate.id == crate_id)
            .values(downloads=Crate.downloads + delta)
            .execution_options(synchronize_session=False)
        )
        row.counted = row.downloads
        session.flush()
        return delta

    def total_downloads(self, *, session: Session) -> int:
        return int(session.execute(select(func.coalesce(func.sum(Crate.downloads), 0))).scalar() or 0)
