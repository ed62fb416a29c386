"""SQLAlchemy models for registry persistence."""

from __future__ import annotations

import datetime as dt
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base

OWNER_KIND_USER = "user"
OWNER_KIND_TEAM = "team"

DEPENDENCY_KIND_NORMAL = "normal"
DEPENDENCY_KIND_BUILD = "build"
DEPENDENCY_KIND_DEV = "dev"
DEPENDENCY_KINDS = {DEPENDENCY_KIND_NORMAL, DEPENDENCY_KIND_BUILD, DEPENDENCY_KIND_DEV}


def _now() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    login: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    avatar: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    api_token: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


class Team(Base):
    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    login: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    avatar: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


class TeamMembership(Base):
    """Mirror of the backing group membership for team-style logins."""

    __tablename__ = "team_memberships"

    team_login: Mapped[str] = mapped_column(String(255), primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )


class Crate(Base):
    __tablename__ = "crates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64))
    canonical_name: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    homepage: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    documentation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    readme: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    license: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    repository: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    downloads: Mapped[int] = mapped_column(Integer, default=0)
    max_upload_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


class ReservedCrateName(Base):
    __tablename__ = "reserved_crate_names"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)


class Version(Base):
    __tablename__ = "versions"
    __table_args__ = (UniqueConstraint("crate_id", "num", name="uq_versions_crate_num"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    crate_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("crates.id", ondelete="CASCADE"),
        index=True,
    )
    num: Mapped[str] = mapped_column(String(64))
    yanked: Mapped[bool] = mapped_column(Boolean, default=False)
    features: Mapped[dict[str, list[str]]] = mapped_column(JSON, default=dict)
    authors: Mapped[list[str]] = mapped_column(JSON, default=list)
    downloads: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


class Dependency(Base):
    __tablename__ = "dependencies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    version_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("versions.id", ondelete="CASCADE"),
        index=True,
    )
    crate_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("crates.id", ondelete="CASCADE"),
        index=True,
    )
    req: Mapped[str] = mapped_column(String(255))
    optional: Mapped[bool] = mapped_column(Boolean, default=False)
    default_features: Mapped[bool] = mapped_column(Boolean, default=True)
    features: Mapped[list[str]] = mapped_column(JSON, default=list)
    target: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    kind: Mapped[str] = mapped_column(String(16), default=DEPENDENCY_KIND_NORMAL)


class CrateOwner(Base):
    """Soft-deletable grant of a crate to a user or team."""

    __tablename__ = "crate_owners"

    crate_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("crates.id", ondelete="CASCADE"),
        primary_key=True,
    )
    owner_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner_kind: Mapped[str] = mapped_column(String(16), primary_key=True)
    created_by: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    deleted: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


class Follow(Base):
    __tablename__ = "follows"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    crate_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("crates.id", ondelete="CASCADE"),
        primary_key=True,
    )


class VersionDownload(Base):
    __tablename__ = "version_downloads"
    __table_args__ = (
        UniqueConstraint("version_id", "date", name="uq_version_downloads_version_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    version_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("versions.id", ondelete="CASCADE"),
        index=True,
    )
    date: Mapped[dt.date] = mapped_column(Date)
    downloads: Mapped[int] = mapped_column(Integer, default=1)
    counted: Mapped[int] = mapped_column(Integer, default=0)


class Keyword(Base):
    __tablename__ = "keywords"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    keyword: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    crates_cnt: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


class CrateKeyword(Base):
    __tablename__ = "crates_keywords"

    crate_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("crates.id", ondelete="CASCADE"),
        primary_key=True,
    )
    keyword_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("keywords.id", ondelete="CASCADE"),
        primary_key=True,
    )


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category: Mapped[str] = mapped_column(String(255))
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    description: Mapped[str] = mapped_column(Text, default="")
    crates_cnt: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


class CrateCategory(Base):
    __tablename__ = "crates_categories"

    crate_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("crates.id", ondelete="CASCADE"),
        primary_key=True,
    )
    category_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("categories.id", ondelete="CASCADE"),
        primary_key=True,
    )


class Badge(Base):
    __tablename__ = "badges"

    crate_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("crates.id", ondelete="CASCADE"),
        primary_key=True,
    )
    badge_type: Mapped[str] = mapped_column(String(64), primary_key=True)
    attributes: Mapped[dict[str, str]] = mapped_column(JSON, default=dict)


__all__ = [
    "Badge",
    "Category",
    "Crate",
    "CrateCategory",
    "CrateKeyword",
    "CrateOwner",
    "DEPENDENCY_KINDS",
    "DEPENDENCY_KIND_BUILD",
    "DEPENDENCY_KIND_DEV",
    "DEPENDENCY_KIND_NORMAL",
    "Dependency",
    "Follow",
    "Keyword",
    "OWNER_KIND_TEAM",
    "OWNER_KIND_USER",
    "ReservedCrateName",
    "Team",
    "TeamMembership",
    "User",
    "Version",
    "VersionDownload",
]
