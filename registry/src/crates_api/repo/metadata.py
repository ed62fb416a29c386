"""Repositories for keywords, categories and badges attached to crates."""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import Session

from crates_api.db.models import Badge, Category, CrateCategory, CrateKeyword, Keyword

from .common import LIKE_ESCAPE, _now, escape_like


class KeywordRepository:
    def list_for_crate(self, *, crate_id: int, session: Session) -> list[Keyword]:
        stmt = (
            select(Keyword)
            .join(CrateKeyword, CrateKeyword.keyword_id == Keyword.id)
            .where(CrateKeyword.crate_id == crate_id)
            .order_by(Keyword.keyword)
        )
        return list(session.execute(stmt).scalars().all())

    def find_or_create_all(self, *, names: Iterable[str], session: Session) -> list[Keyword]:
        wanted = sorted({name.lower() for name in names})
        if not wanted:
            return []
        existing = {
            keyword.keyword: keyword
            for keyword in session.execute(
                select(Keyword).where(Keyword.keyword.in_(wanted))
            ).scalars().all()
        }
        for name in wanted:
            if name not in existing:
                keyword = Keyword(keyword=name, crates_cnt=0, created_at=_now())
                session.add(keyword)
                existing[name] = keyword
        session.flush()
        return [existing[name] for name in wanted]

    def replace_for_crate(
        self,
        *,
        crate_id: int,
        keywords: list[Keyword],
        session: Session,
    ) -> None:
        current = {keyword.id for keyword in self.list_for_crate(crate_id=crate_id, session=session)}
        desired = {keyword.id for keyword in keywords}
        removed = current - desired
        added = desired - current
        if removed:
            session.execute(
                delete(CrateKeyword).where(
                    CrateKeyword.crate_id == crate_id,
                    CrateKeyword.keyword_id.in_(removed),
                )
            )
            session.execute(
                update(Keyword)
                .where(Keyword.id.in_(removed))
                .values(crates_cnt=Keyword.crates_cnt - 1)
                .execution_options(synchronize_session=False)
            )
        for keyword_id in sorted(added):
            session.add(CrateKeyword(crate_id=crate_id, keyword_id=keyword_id))
        if added:
            session.execute(
                update(Keyword)
                .where(Keyword.id.in_(added))
                .values(crates_cnt=Keyword.crates_cnt + 1)
                .execution_options(synchronize_session=False)
            )
        session.flush()

    def popular(self, *, limit: int, session: Session) -> list[Keyword]:
        stmt = select(Keyword).order_by(Keyword.crates_cnt.desc(), Keyword.keyword).limit(limit)
        return list(session.execute(stmt).scalars().all())

    def crate_ids_for_keyword(self, *, keyword: str):
        return (
            select(CrateKeyword.crate_id)
            .join(Keyword, Keyword.id == CrateKeyword.keyword_id)
            .where(func.lower(Keyword.keyword) == keyword.lower())
        )


class CategoryRepository:
    def list_for_crate(self, *, crate_id: int, session: Session) -> list[Category]:
        stmt = (
            select(Category)
            .join(CrateCategory, CrateCategory.category_id == Category.id)
            .where(CrateCategory.crate_id == crate_id)
            .order_by(Category.slug)
        )
        return list(session.execute(stmt).scalars().all())

    def get_by_slugs(self, *, slugs: Iterable[str], session: Session) -> list[Category]:
        wanted = list(slugs)
        if not wanted:
            return []
        stmt = select(Category).where(Category.slug.in_(wanted))
        return list(session.execute(stmt).scalars().all())

    def replace_for_crate(
        self,
        *,
        crate_id: int,
        categories: list[Category],
        session: Session,
    ) -> None:
        current = {category.id for category in self.list_for_crate(crate_id=crate_id, session=session)}
        desired = {category.id for category in categories}
        removed = current - desired
        added = desired - current
        if removed:
            session.execute(
                delete(CrateCategory).where(
                    CrateCategory.crate_id == crate_id,
                    CrateCategory.category_id.in_(removed),
                )
            )
            session.execute(
                update(Category)
                .where(Category.id.in_(removed))
                .values(crates_cnt=Category.crates_cnt - 1)
                .execution_options(synchronize_session=False)
            )
        for category_id in sorted(added):
            session.add(CrateCategory(crate_id=crate_id, category_id=category_id))
        if added:
            session.execute(
                update(Category)
                .where(Category.id.in_(added))
                .values(crates_cnt=Category.crates_cnt + 1)
                .execution_options(synchronize_session=False)
            )
        session.flush()

    def toplevel(self, *, limit: int, session: Session) -> list[tuple[Category, int]]:
        """Top-level categories with crate counts rolled up from their subcategories."""

        categories = session.execute(select(Category)).scalars().all()
        totals: dict[str, int] = {}
        parents: dict[str, Category] = {}
        for category in categories:
            root = category.slug.split("::", 1)[0]
            totals[root] = totals.get(root, 0) + (category.crates_cnt or 0)
            if "::" not in category.slug:
                parents[category.slug] = category
        ranked = sorted(parents.values(), key=lambda item: (-totals[item.slug], item.slug))
        return [(category, totals[category.slug]) for category in ranked[:limit]]

    def crate_ids_for_category(self, *, slug: str):
        return (
            select(CrateCategory.crate_id)
            .join(Category, Category.id == CrateCategory.category_id)
            .where(
                or_(
                    Category.slug == slug,
                    Category.slug.like(f"{escape_like(slug)}::%", escape=LIKE_ESCAPE),
                )
            )
        )


class BadgeRepository:
    def list_for_crate(self, *, crate_id: int, session: Session) -> list[Badge]:
        stmt = select(Badge).where(Badge.crate_id == crate_id).order_by(Badge.badge_type)
        return list(session.execute(stmt).scalars().all())

    def list_for_crates(self, *, crate_ids: Iterable[int], session: Session) -> dict[int, list[Badge]]:
        ids = list(crate_ids)
        grouped: dict[int, list[Badge]] = {crate_id: [] for crate_id in ids}
        if not ids:
            return grouped
        stmt = select(Badge).where(Badge.crate_id.in_(ids)).order_by(Badge.badge_type)
        for badge in session.execute(stmt).scalars().all():
            grouped[badge.crate_id].append(badge)
        return grouped

    def replace_for_crate(
        self,
        *,
        crate_id: int,
        badges: dict[str, dict[str, str]],
        session: Session,
    ) -> None:
        session.execute(delete(Badge).where(Badge.crate_id == crate_id))
        for badge_type, attributes in sorted(badges.items()):
            session.add(Badge(crate_id=crate_id, badge_type=badge_type, attributes=dict(attributes)))
        session.flush()
