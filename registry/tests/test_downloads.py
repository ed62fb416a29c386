import logging
from datetime import date, timedelta

import pytest
from sqlalchemy import select

from crates_api.config.settings import RegistrySettings
from crates_api.db.models import Crate, Version, VersionDownload
from crates_api.db.session import run_in_session
from crates_api.errors import RegistryNotFoundError
from crates_api.repo.downloads import VersionDownloadRepository
from crates_api.service.downloads import DownloadService

TODAY = date(2026, 10, 19)


class Clock:
    def __init__(self, today: date) -> None:
        self.today = today

    def __call__(self) -> date:
        return self.today


class BrokenDownloadRepository(VersionDownloadRepository):
    def increment_existing(self, *, version_id, day, session):
        raise RuntimeError("database is read only")


def _download_rows():
    return run_in_session(
        lambda session: [
            (row.date, row.downloads, row.counted)
            for row in session.execute(select(VersionDownload).order_by(VersionDownload.date)).scalars().all()
        ]
    )


@pytest.fixture
def clock():
    return Clock(TODAY)


@pytest.fixture
def downloads(artifact_store, clock):
    return DownloadService(artifacts=artifact_store, clock=clock)


@pytest.fixture
def published(make_user, publisher, body):
    alice = make_user("alice")
    publisher.publish(body("Foo_Bar", "1.0.0"), actor_id=alice.id)
    return alice


def test_downloads_on_same_day_share_a_row(published, downloads):
    downloads.record_download("foo-bar", "1.0.0")
    downloads.record_download("FOO_BAR", "1.0.0")

    assert _download_rows() == [(TODAY, 2, 0)]


def test_downloads_on_consecutive_days_get_separate_rows(published, downloads, clock):
    downloads.record_download("foo_bar", "1.0.0")
    clock.today = TODAY + timedelta(days=1)
    downloads.record_download("foo_bar", "1.0.0")

    assert _download_rows() == [(TODAY, 1, 0), (TODAY + timedelta(days=1), 1, 0)]


def test_unknown_version_is_not_found(published, downloads):
    with pytest.raises(RegistryNotFoundError, match="crate or version not found"):
        downloads.record_download("foo_bar", "9.9.9")

    assert _download_rows() == []


def test_download_location_points_at_artifact(published, downloads):
    location = downloads.download_location("foo-bar", "1.0.0")

    assert location == "/crates/foo_bar/foo_bar-1.0.0.crate"
    assert _download_rows() == [(TODAY, 1, 0)]


def test_missing_artifact_is_not_found(published, downloads, artifact_store):
    artifact_store.delete("Foo_Bar", "1.0.0")

    with pytest.raises(RegistryNotFoundError, match="crate files not found"):
        downloads.download_location("foo_bar", "1.0.0")


def test_accounting_failure_propagates_on_primary(published, artifact_store):
    service = DownloadService(
        downloads=BrokenDownloadRepository(),
        artifacts=artifact_store,
        settings=RegistrySettings(mirror="primary"),
    )

    with pytest.raises(RuntimeError, match="database is read only"):
        service.download_location("foo_bar", "1.0.0")


def test_read_only_mirror_ignores_accounting_failure(published, artifact_store, caplog):
    service = DownloadService(
        downloads=BrokenDownloadRepository(),
        artifacts=artifact_store,
        settings=RegistrySettings(mirror="read_only_mirror"),
    )

    with caplog.at_level(logging.WARNING, logger="crates_api.service.downloads"):
        location = service.download_location("foo_bar", "1.0.0")

    assert location.endswith("foo_bar-1.0.0.crate")
    assert "Ignoring download accounting failure for foo_bar 1.0.0" in caplog.text


def test_rollup_folds_daily_counts_into_totals(published, downloads, clock):
    downloads.record_download("foo_bar", "1.0.0")
    downloads.record_download("foo_bar", "1.0.0")
    clock.today = TODAY + timedelta(days=1)
    downloads.record_download("foo_bar", "1.0.0")

    assert downloads.rollup() == 3
    assert downloads.rollup() == 0

    downloads.record_download("foo_bar", "1.0.0")
    assert downloads.rollup() == 1

    crate_total, version_total = run_in_session(
        lambda session: (
            session.execute(select(Crate.downloads)).scalar_one(),
            session.execute(select(Version.downloads)).scalar_one(),
        )
    )
    assert crate_total == 4
    assert version_total == 4
    assert _download_rows() == [(TODAY, 2, 2), (TODAY + timedelta(days=1), 2, 2)]


def test_crate_downloads_splits_recent_versions_from_extra(make_user, publisher, body, downloads, clock):
    alice = make_user("alice")
    nums = ["1.0.0", "1.1.0", "1.2.0", "1.3.0", "1.4.0", "1.5.0"]
    for num in nums:
        publisher.publish(body("foo", num), actor_id=alice.id)

    clock.today = TODAY - timedelta(days=1)
    downloads.record_download("foo", "1.0.0")
    downloads.record_download("foo", "1.5.0")
    clock.today = TODAY - timedelta(days=120)
    downloads.record_download("foo", "1.5.0")
    clock.today = TODAY

    history = downloads.crate_downloads("foo")

    assert [(item.date, item.downloads) for item in history.version_downloads] == [
        ((TODAY - timedelta(days=1)).isoformat(), 1)
    ]
    assert [(extra.date, extra.downloads) for extra in history.meta.extra_downloads] == [
        ((TODAY - timedelta(days=1)).isoformat(), 1)
    ]


def test_crate_downloads_unknown_crate(downloads):
    with pytest.raises(RegistryNotFoundError):
        downloads.crate_downloads("missing")
