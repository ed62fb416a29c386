"""Crate follows for authenticated users."""

from __future__ import annotations

from typing import Optional

from crates_api.db.session import run_in_session
from crates_api.repo.follows import FollowRepository

from .crates import CrateStore
from .ownership import require_user


class FollowService:
    def __init__(self, follows: Optional[FollowRepository] = None, store: Optional[CrateStore] = None) -> None:
        self._follows = follows or FollowRepository()
        self._store = store or CrateStore()

    def follow(self, crate_name: str, *, actor_id: Optional[int]) -> None:
        def _follow(session):
            user = require_user(actor_id, session=session)
            crate = self._store.find_by_name(crate_name, session=session)
            self._follows.insert_if_absent(user_id=user.id, crate_id=crate.id, session=session)

        run_in_session(_follow)

    def unfollow(self, crate_name: str, *, actor_id: Optional[int]) -> None:
        def _unfollow(session):
            user = require_user(actor_id, session=session)
            crate = self._store.find_by_name(crate_name, session=session)
            self._follows.delete(user_id=user.id, crate_id=crate.id, session=session)

        run_in_session(_unfollow)

    def following(self, crate_name: str, *, actor_id: Optional[int]) -> bool:
        def _following(session):
            user = require_user(actor_id, session=session)
            crate = self._store.find_by_name(crate_name, session=session)
            return self._follows.exists(user_id=user.id, crate_id=crate.id, session=session)

        return run_in_session(_following)


__all__ = ["FollowService"]
