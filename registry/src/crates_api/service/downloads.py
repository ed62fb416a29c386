"""Download accounting and download history."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.orm import Session

from crates_api.config.settings import RegistrySettings, get_settings
from crates_api.db.session import run_in_session
from crates_api.errors import RegistryNotFoundError
from crates_api.models import DownloadsMeta, DownloadsResponse, ExtraDownload
from crates_api.repo.downloads import VersionDownloadRepository
from crates_api.repo.versions import VersionRepository
from crates_api.storage import ArtifactStore, LocalArtifactStore

from .crates import CrateStore
from .encoding import encode_date, encode_version_download, sort_versions

LOGGER = logging.getLogger(__name__)

HISTORY_DAYS = 90
HISTORY_VERSIONS = 5


def _today() -> date:
    return datetime.now(timezone.utc).date()


class DownloadService:
    def __init__(
        self,
        downloads: Optional[VersionDownloadRepository] = None,
        versions: Optional[VersionRepository] = None,
        store: Optional[CrateStore] = None,
        artifacts: Optional[ArtifactStore] = None,
        settings: Optional[RegistrySettings] = None,
        clock: Callable[[], date] = _today,
    ) -> None:
        self._downloads = downloads or VersionDownloadRepository()
        self._versions = versions or VersionRepository()
        self._store = store or CrateStore()
        self._artifacts = artifacts or LocalArtifactStore()
        self._settings = settings
        self._clock = clock

    @property
    def settings(self) -> RegistrySettings:
        return self._settings or get_settings()

    def increment(self, crate_name: str, version: str, *, session: Session) -> None:
        """Count one download of ``crate_name`` ``version`` for today.

        Two concurrent first downloads of a day may both miss the update and
        race on the insert; the unique ``(version_id, date)`` constraint makes
        the loser fail instead of double counting.
        """

        version_id = self._versions.find_id_by_crate_name(crate_name=crate_name, num=version, session=session)
        if version_id is None:
            raise RegistryNotFoundError("crate or version not found")
        today = self._clock()
        if not self._downloads.increment_existing(version_id=version_id, day=today, session=session):
            self._downloads.insert(version_id=version_id, day=today, session=session)

    def record_download(self, crate_name: str, version: str) -> None:
        try:
            run_in_session(lambda session: self.increment(crate_name, version, session=session))
        except Exception:
            if not self.settings.is_read_only_mirror:
                raise
            LOGGER.warning(
                "Ignoring download accounting failure for %s %s",
                crate_name,
                version,
                exc_info=True,
            )

    def download_location(self, crate_name: str, version: str) -> str:
        """Record a download and return where the artifact can be fetched."""

        self.record_download(crate_name, version)
        location = self._artifacts.location_for(crate_name, version)
        if location is None:
            raise RegistryNotFoundError("crate files not found")
        return location

    def crate_downloads(self, crate_name: str) -> DownloadsResponse:
        since = self._clock() - timedelta(days=HISTORY_DAYS)

        def _history(session):
            crate = self._store.find_by_name(crate_name, session=session)
            versions = sort_versions(self._versions.list_for_crate(crate_id=crate.id, session=session))
            recent_ids = [version.id for version in versions[:HISTORY_VERSIONS]]
            rows = self._downloads.list_recent(version_ids=recent_ids, since=since, session=session)
            extra = self._downloads.daily_totals_excluding(
                crate_id=crate.id,
                excluded_version_ids=recent_ids,
                since=since,
                session=session,
            )
            return DownloadsResponse(
                version_downloads=[encode_version_download(row) for row in rows],
                meta=DownloadsMeta(
                    extra_downloads=[
                        ExtraDownload(date=encode_date(day), downloads=total) for day, total in extra
                    ]
                ),
            )

        return run_in_session(_history)

    def rollup(self) -> int:
        """Fold uncounted daily downloads into version and crate totals; returns the amount folded."""

        def _rollup(session):
            total = 0
            for row in self._downloads.list_uncounted(session=session):
                total += self._downloads.apply_rollup(row=row, session=session)
            return total

        total = run_in_session(_rollup)
        if total:
            LOGGER.info("Rolled up %d downloads", total)
        return total


__all__ = ["DownloadService", "HISTORY_DAYS", "HISTORY_VERSIONS"]
