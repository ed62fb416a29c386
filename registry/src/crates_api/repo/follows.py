"""Repository for crate follows."""

from __future__ import annotations

from sqlalchemy import delete, exists, select
from sqlalchemy.orm import Session

from crates_api.db.models import Follow

from .common import dialect_insert


class FollowRepository:
    def insert_if_absent(self, *, user_id: int, crate_id: int, session: Session) -> None:
        stmt = (
            dialect_insert(session, Follow)
            .values(user_id=user_id, crate_id=crate_id)
            .on_conflict_do_nothing(index_elements=["user_id", "crate_id"])
        )
        session.execute(stmt)

    def delete(self, *, user_id: int, crate_id: int, session: Session) -> None:
        session.execute(
            delete(Follow).where(Follow.user_id == user_id, Follow.crate_id == crate_id)
        )

    def exists(self, *, user_id: int, crate_id: int, session: Session) -> bool:
        stmt = select(exists().where(Follow.user_id == user_id, Follow.crate_id == crate_id))
        return bool(session.execute(stmt).scalar())

    def crate_ids_followed_by(self, *, user_id: int):
        return select(Follow.crate_id).where(Follow.user_id == user_id)
