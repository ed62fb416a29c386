"""Crate listing, search and read-only crate views."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from sqlalchemy import and_, case, func, literal, literal_column, or_, select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from crates_api.config.settings import get_settings
from crates_api.db.models import Crate
from crates_api.db.session import run_in_session
from crates_api.errors import RegistryAuthorizationError, RegistryValidationError
from crates_api.models import (
    CrateDetail,
    CrateList,
    DependencyList,
    ListMeta,
    Summary,
    VersionList,
)
from crates_api.naming import canonicalize
from crates_api.repo.common import LIKE_ESCAPE, escape_like
from crates_api.repo.crates import CrateRepository
from crates_api.repo.downloads import VersionDownloadRepository
from crates_api.repo.follows import FollowRepository
from crates_api.repo.metadata import BadgeRepository, CategoryRepository, KeywordRepository
from crates_api.repo.owners import CrateOwnerRepository
from crates_api.repo.versions import DependencyRepository, VersionRepository

from .crates import CrateStore
from .encoding import (
    encode_category,
    encode_crate,
    encode_dependency,
    encode_keyword,
    encode_minimal,
    encode_version,
    max_version,
    sort_versions,
)

SORT_ALPHA = "alpha"
SORT_DOWNLOADS = "downloads"
SUMMARY_SIZE = 10


@dataclass(frozen=True)
class CrateQuery:
    """Listing parameters; at most one filter applies, in field order."""

    q: Optional[str] = None
    letter: Optional[str] = None
    keyword: Optional[str] = None
    category: Optional[str] = None
    user_id: Optional[int] = None
    following: bool = False
    sort: Literal["alpha", "downloads"] = SORT_ALPHA
    page: int = 1
    per_page: Optional[int] = None


def paginate(page: int, per_page: Optional[int]) -> tuple[int, int]:
    """Return ``(offset, limit)`` for a 1-based page."""

    settings = get_settings()
    limit = settings.page_size_default if per_page is None else per_page
    if page < 1:
        raise RegistryValidationError("page indexing starts from 1")
    if limit < 1:
        raise RegistryValidationError("per_page must be at least 1")
    if limit > settings.page_size_max:
        raise RegistryValidationError(f"cannot request more than {settings.page_size_max} items")
    return (page - 1) * limit, limit


def _search_document():
    return func.coalesce(Crate.name, "") + " " + func.coalesce(Crate.description, "")


def _text_search(stmt: Select, q: str, dialect: str):
    """Apply a text filter; returns the statement and a rank expression."""

    if dialect == "postgresql":
        config = literal_column("'english'::regconfig")
        vector = func.to_tsvector(config, _search_document())
        query = func.plainto_tsquery(config, q)
        return stmt.where(vector.op("@@")(query)), func.ts_rank_cd(vector, query)

    terms = [term for term in q.split() if term]
    clauses = []
    rank = literal(0)
    for term in terms:
        pattern = f"%{escape_like(term)}%"
        name_match = Crate.name.ilike(pattern, escape=LIKE_ESCAPE)
        description_match = Crate.description.ilike(pattern, escape=LIKE_ESCAPE)
        clauses.append(or_(name_match, description_match))
        rank = rank + case((name_match, 2), else_=0) + case((description_match, 1), else_=0)
    if clauses:
        stmt = stmt.where(and_(*clauses))
    return stmt, rank


class ListingService:
    def __init__(
        self,
        store: Optional[CrateStore] = None,
        crates: Optional[CrateRepository] = None,
        versions: Optional[VersionRepository] = None,
        dependencies: Optional[DependencyRepository] = None,
        keywords: Optional[KeywordRepository] = None,
        categories: Optional[CategoryRepository] = None,
        badges: Optional[BadgeRepository] = None,
        owners: Optional[CrateOwnerRepository] = None,
        follows: Optional[FollowRepository] = None,
        downloads: Optional[VersionDownloadRepository] = None,
    ) -> None:
        self._store = store or CrateStore()
        self._crates = crates or CrateRepository()
        self._versions = versions or VersionRepository()
        self._dependencies = dependencies or DependencyRepository()
        self._keywords = keywords or KeywordRepository()
        self._categories = categories or CategoryRepository()
        self._badges = badges or BadgeRepository()
        self._owners = owners or CrateOwnerRepository()
        self._follows = follows or FollowRepository()
        self._downloads = downloads or VersionDownloadRepository()

    def build_query(self, query: CrateQuery, *, actor_id: Optional[int], dialect: str) -> Select:
        """Build the filtered, ordered listing statement (without pagination)."""

        stmt = select(Crate, func.count().over().label("total"))
        rank = None
        if query.q:
            stmt, rank = _text_search(stmt, query.q, dialect)
        elif query.letter:
            prefix = escape_like(canonicalize(query.letter[0]))
            stmt = stmt.where(Crate.canonical_name.like(f"{prefix}%", escape=LIKE_ESCAPE))
        elif query.keyword:
            stmt = stmt.where(Crate.id.in_(self._keywords.crate_ids_for_keyword(keyword=query.keyword)))
        elif query.category:
            stmt = stmt.where(Crate.id.in_(self._categories.crate_ids_for_category(slug=query.category)))
        elif query.user_id is not None:
            stmt = stmt.where(Crate.id.in_(self._owners.crate_ids_owned_by_user(user_id=query.user_id)))
        elif query.following:
            if actor_id is None:
                raise RegistryAuthorizationError("must be logged in to perform that action")
            stmt = stmt.where(Crate.id.in_(self._follows.crate_ids_followed_by(user_id=actor_id)))

        ordering = []
        if query.q:
            exact = case((Crate.canonical_name == canonicalize(query.q.strip()), 1), else_=0)
            ordering.append(exact.desc())
            if query.sort == SORT_DOWNLOADS:
                ordering.append(Crate.downloads.desc())
            else:
                ordering.append(rank.desc())
        elif query.sort == SORT_DOWNLOADS:
            ordering.append(Crate.downloads.desc())
        ordering.append(Crate.name.asc())
        return stmt.order_by(*ordering)

    def _encode_page(self, crates: list[Crate], *, session: Session):
        ids = [crate.id for crate in crates]
        versions = self._versions.list_for_crates(crate_ids=ids, include_yanked=False, session=session)
        badges = self._badges.list_for_crates(crate_ids=ids, session=session)
        return [
            encode_minimal(
                crate,
                max_version(version.num for version in versions[crate.id]),
                badges[crate.id],
            )
            for crate in crates
        ]

    def search(self, query: CrateQuery, *, actor_id: Optional[int] = None) -> CrateList:
        offset, limit = paginate(query.page, query.per_page)

        def _search(session):
            dialect = session.get_bind().dialect.name
            stmt = self.build_query(query, actor_id=actor_id, dialect=dialect)
            rows = session.execute(stmt.offset(offset).limit(limit)).all()
            if rows:
                total = int(rows[0][1])
            elif offset:
                counted = stmt.order_by(None).subquery()
                total = int(session.execute(select(func.count()).select_from(counted)).scalar() or 0)
            else:
                total = 0
            crates = [row[0] for row in rows]
            return CrateList(crates=self._encode_page(crates, session=session), meta=ListMeta(total=total))

        return run_in_session(_search)

    def _crates_ordered(self, *criteria, where=None, session: Session) -> list[Crate]:
        stmt = select(Crate)
        if where is not None:
            stmt = stmt.where(where)
        stmt = stmt.order_by(*criteria).limit(SUMMARY_SIZE)
        return list(session.execute(stmt).scalars().all())

    def summary(self) -> Summary:
        def _summary(session):
            new_crates = self._crates_ordered(Crate.created_at.desc(), Crate.id.desc(), session=session)
            most_downloaded = self._crates_ordered(Crate.downloads.desc(), Crate.name.asc(), session=session)
            just_updated = self._crates_ordered(
                Crate.updated_at.desc(),
                Crate.id.desc(),
                where=Crate.updated_at != Crate.created_at,
                session=session,
            )
            return Summary(
                num_downloads=self._downloads.total_downloads(session=session),
                num_crates=self._crates.count(session=session),
                new_crates=self._encode_page(new_crates, session=session),
                most_downloaded=self._encode_page(most_downloaded, session=session),
                just_updated=self._encode_page(just_updated, session=session),
                popular_keywords=[
                    encode_keyword(keyword)
                    for keyword in self._keywords.popular(limit=SUMMARY_SIZE, session=session)
                ],
                popular_categories=[
                    encode_category(category, total)
                    for category, total in self._categories.toplevel(limit=SUMMARY_SIZE, session=session)
                ],
            )

        return run_in_session(_summary)

    def show(self, crate_name: str) -> CrateDetail:
        def _show(session):
            crate = self._store.find_by_name(crate_name, session=session)
            versions = sort_versions(self._versions.list_for_crate(crate_id=crate.id, session=session))
            keywords = self._keywords.list_for_crate(crate_id=crate.id, session=session)
            categories = self._categories.list_for_crate(crate_id=crate.id, session=session)
            badges = self._badges.list_for_crate(crate_id=crate.id, session=session)
            top = max_version(version.num for version in versions if not version.yanked)
            return CrateDetail(
                krate=encode_crate(
                    crate,
                    top,
                    versions=[version.id for version in versions],
                    keywords=keywords,
                    categories=categories,
                    badges=badges,
                ),
                versions=[encode_version(version, crate.name) for version in versions],
                keywords=[encode_keyword(keyword) for keyword in keywords],
                categories=[encode_category(category) for category in categories],
            )

        return run_in_session(_show)

    def versions(self, crate_name: str) -> VersionList:
        def _versions(session):
            crate = self._store.find_by_name(crate_name, session=session)
            versions = sort_versions(self._versions.list_for_crate(crate_id=crate.id, session=session))
            return VersionList(versions=[encode_version(version, crate.name) for version in versions])

        return run_in_session(_versions)

    def reverse_dependencies(
        self,
        crate_name: str,
        *,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> DependencyList:
        offset, limit = paginate(page, per_page)

        def _reverse(session):
            crate = self._store.find_by_name(crate_name, session=session)
            rows, total = self._dependencies.reverse_dependencies(
                crate_id=crate.id,
                offset=offset,
                limit=limit,
                session=session,
            )
            return DependencyList(
                dependencies=[encode_dependency(dep, name, downloads) for dep, name, downloads in rows],
                meta=ListMeta(total=total),
            )

        return run_in_session(_reverse)


__all__ = ["CrateQuery", "ListingService", "SORT_ALPHA", "SORT_DOWNLOADS", "paginate"]
