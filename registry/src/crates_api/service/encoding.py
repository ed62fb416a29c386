"""Conversion of ORM rows into wire models."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Iterable, Optional, Sequence

import semver

from crates_api.db.models import Badge, Category, Crate, Dependency, Keyword, Version, VersionDownload
from crates_api.models import (
    CrateLinks,
    EncodableBadge,
    EncodableCategory,
    EncodableCrate,
    EncodableDependency,
    EncodableKeyword,
    EncodableVersion,
    EncodableVersionDownload,
    VersionLinks,
)

ZERO_VERSION = semver.Version(0, 0, 0)


def encode_time(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def encode_date(value: date) -> str:
    return value.isoformat()


def max_version(nums: Iterable[str]) -> semver.Version:
    """Highest semantic version among ``nums``; ``0.0.0`` when empty."""

    parsed = [semver.Version.parse(num) for num in nums]
    return max(parsed, default=ZERO_VERSION)


def sort_versions(versions: Iterable[Version]) -> list[Version]:
    """Versions ordered newest first by semantic version."""

    return sorted(versions, key=lambda item: semver.Version.parse(item.num), reverse=True)


def encode_badge(badge: Badge) -> EncodableBadge:
    return EncodableBadge(badge_type=badge.badge_type, attributes=dict(badge.attributes or {}))


def encode_crate(
    crate: Crate,
    max_version: semver.Version,
    *,
    versions: Optional[Sequence[int]] = None,
    keywords: Optional[Sequence[Keyword]] = None,
    categories: Optional[Sequence[Category]] = None,
    badges: Optional[Sequence[Badge]] = None,
) -> EncodableCrate:
    name = crate.name
    return EncodableCrate(
        id=name,
        name=name,
        updated_at=encode_time(crate.updated_at),
        created_at=encode_time(crate.created_at),
        downloads=crate.downloads or 0,
        versions=list(versions) if versions is not None else None,
        keywords=[keyword.keyword for keyword in keywords] if keywords is not None else None,
        categories=[category.slug for category in categories] if categories is not None else None,
        badges=[encode_badge(badge) for badge in badges] if badges is not None else None,
        max_version=str(max_version),
        description=crate.description,
        homepage=crate.homepage,
        documentation=crate.documentation,
        license=crate.license,
        repository=crate.repository,
        links=CrateLinks(
            version_downloads=f"/api/v1/crates/{name}/downloads",
            versions=None if versions is not None else f"/api/v1/crates/{name}/versions",
            owners=f"/api/v1/crates/{name}/owners",
            reverse_dependencies=f"/api/v1/crates/{name}/reverse_dependencies",
        ),
    )


def encode_minimal(
    crate: Crate,
    max_version: semver.Version,
    badges: Optional[Sequence[Badge]] = None,
) -> EncodableCrate:
    return encode_crate(crate, max_version, badges=badges)


def encode_version(version: Version, crate_name: str) -> EncodableVersion:
    base = f"/api/v1/crates/{crate_name}/{version.num}"
    return EncodableVersion(
        id=version.id,
        crate=crate_name,
        num=version.num,
        dl_path=f"{base}/download",
        updated_at=encode_time(version.updated_at),
        created_at=encode_time(version.created_at),
        downloads=version.downloads or 0,
        features={key: list(value) for key, value in (version.features or {}).items()},
        yanked=bool(version.yanked),
        links=VersionLinks(
            dependencies=f"{base}/dependencies",
            version_downloads=f"{base}/downloads",
            authors=f"{base}/authors",
        ),
    )


def encode_dependency(
    dependency: Dependency,
    crate_name: str,
    downloads: int = 0,
) -> EncodableDependency:
    return EncodableDependency(
        id=dependency.id,
        version_id=dependency.version_id,
        crate_id=crate_name,
        req=dependency.req,
        optional=bool(dependency.optional),
        default_features=bool(dependency.default_features),
        features=list(dependency.features or []),
        target=dependency.target,
        kind=dependency.kind,
        downloads=downloads or 0,
    )


def encode_keyword(keyword: Keyword) -> EncodableKeyword:
    return EncodableKeyword(
        id=keyword.keyword,
        keyword=keyword.keyword,
        created_at=encode_time(keyword.created_at),
        crates_cnt=keyword.crates_cnt or 0,
    )


def encode_category(category: Category, crates_cnt: Optional[int] = None) -> EncodableCategory:
    return EncodableCategory(
        id=category.slug,
        category=category.category,
        slug=category.slug,
        description=category.description or "",
        created_at=encode_time(category.created_at),
        crates_cnt=category.crates_cnt if crates_cnt is None else crates_cnt,
    )


def encode_version_download(row: VersionDownload) -> EncodableVersionDownload:
    return EncodableVersionDownload(
        id=row.id,
        version=row.version_id,
        downloads=row.downloads,
        date=encode_date(row.date),
    )


__all__ = [
    "ZERO_VERSION",
    "encode_badge",
    "encode_category",
    "encode_crate",
    "encode_date",
    "encode_dependency",
    "encode_keyword",
    "encode_minimal",
    "encode_time",
    "encode_version",
    "encode_version_download",
    "max_version",
    "sort_versions",
]
