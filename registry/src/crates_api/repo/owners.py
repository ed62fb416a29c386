"""Repository for soft-deletable crate ownership rows."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from crates_api.db.models import OWNER_KIND_TEAM, OWNER_KIND_USER, CrateOwner, Team, User

from .common import _now


class CrateOwnerRepository:
    def list_user_owners(self, *, crate_id: int, session: Session) -> list[User]:
        stmt = (
            select(User)
            .join(CrateOwner, CrateOwner.owner_id == User.id)
            .where(
                CrateOwner.crate_id == crate_id,
                CrateOwner.deleted.is_(False),
                CrateOwner.owner_kind == OWNER_KIND_USER,
            )
            .order_by(User.id)
        )
        return list(session.execute(stmt).scalars().all())

    def list_team_owners(self, *, crate_id: int, session: Session) -> list[Team]:
        stmt = (
            select(Team)
            .join(CrateOwner, CrateOwner.owner_id == Team.id)
            .where(
                CrateOwner.crate_id == crate_id,
                CrateOwner.deleted.is_(False),
                CrateOwner.owner_kind == OWNER_KIND_TEAM,
            )
            .order_by(Team.id)
        )
        return list(session.execute(stmt).scalars().all())

    def undelete(
        self,
        *,
        crate_id: int,
        owner_id: int,
        owner_kind: str,
        session: Session,
    ) -> int:
        result = session.execute(
            update(CrateOwner)
            .where(
                CrateOwner.crate_id == crate_id,
                CrateOwner.owner_id == owner_id,
                CrateOwner.owner_kind == owner_kind,
            )
            .values(deleted=False, updated_at=_now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def insert(
        self,
        *,
        crate_id: int,
        owner_id: int,
        owner_kind: str,
        created_by: int | None,
        session: Session,
    ) -> CrateOwner:
        now = _now()
        row = CrateOwner(
            crate_id=crate_id,
            owner_id=owner_id,
            owner_kind=owner_kind,
            created_by=created_by,
            deleted=False,
            created_at=now,
            updated_at=now,
        )
        session.add(row)
        session.flush()
        return row

    def soft_delete(
        self,
        *,
        crate_id: int,
        owner_id: int,
        owner_kind: str,
        session: Session,
    ) -> int:
        result = session.execute(
            update(CrateOwner)
            .where(
                CrateOwner.crate_id == crate_id,
                CrateOwner.owner_id == owner_id,
                CrateOwner.owner_kind == owner_kind,
            )
            .values(deleted=True, updated_at=_now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def crate_ids_owned_by_user(self, *, user_id: int):
        return select(CrateOwner.crate_id).where(
            CrateOwner.owner_id == user_id,
            CrateOwner.owner_kind == OWNER_KIND_USER,
            CrateOwner.deleted.is_(False),
        )
