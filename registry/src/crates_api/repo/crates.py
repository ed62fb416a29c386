"""Repository for crate rows."""

from __future__ import annotations

from typing import Any

from sqlalchemy import exists, func, select, update
from sqlalchemy.orm import Session

from crates_api.db.models import Crate, ReservedCrateName
from crates_api.naming import canonical_name_expr, canonicalize

from .common import dialect_insert


class CrateRepository:
    def get_by_id(self, *, crate_id: int, session: Session) -> Crate | None:
        return session.get(Crate, crate_id)

    def get_by_name(self, *, name: str, session: Session) -> Crate | None:
        stmt = select(Crate).where(Crate.canonical_name == canonicalize(name))
        return session.execute(stmt).scalars().first()

    def insert_if_absent(self, *, values: dict[str, Any], session: Session) -> int | None:
        """Insert a crate row unless its canonical name is taken.

        Returns the new id, or ``None`` when a concurrent writer already owns
        the name.
        """

        stmt = (
            dialect_insert(session, Crate)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["canonical_name"])
            .returning(Crate.id)
        )
        row = session.execute(stmt).first()
        return row[0] if row else None

    def update_by_canonical_name(
        self,
        *,
        canonical_name: str,
        values: dict[str, Any],
        session: Session,
    ) -> Crate | None:
        session.execute(
            update(Crate)
            .where(Crate.canonical_name == canonical_name)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        stmt = (
            select(Crate)
            .where(Crate.canonical_name == canonical_name)
            .execution_options(populate_existing=True)
        )
        return session.execute(stmt).scalars().first()

    def is_reserved(self, *, name: str, session: Session) -> bool:
        stmt = select(
            exists().where(canonical_name_expr(ReservedCrateName.name) == canonicalize(name))
        )
        return bool(session.execute(stmt).scalar())

    def count(self, *, session: Session) -> int:
        return int(session.execute(select(func.count()).select_from(Crate)).scalar() or 0)
