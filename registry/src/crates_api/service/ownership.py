"""Crate ownership: owner resolution, rights and owner modification."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from crates_api.db.models import OWNER_KIND_TEAM, OWNER_KIND_USER, Crate, Team, User
from crates_api.db.session import run_in_session
from crates_api.errors import (
    RegistryAuthorizationError,
    RegistryNotFoundError,
    RegistryValidationError,
)
from crates_api.models import EncodableOwner, OwnerList
from crates_api.repo.accounts import TeamRepository, UserRepository
from crates_api.repo.owners import CrateOwnerRepository
from crates_api.teams import DatabaseTeamDirectory, TeamDirectory, is_team_login

from .crates import CrateStore

LOGGER = logging.getLogger(__name__)


class Rights(IntEnum):
    NONE = 0
    PUBLISH = 1
    FULL = 2


@dataclass(frozen=True)
class Owner:
    """A resolved crate owner; ``kind`` tags whether ``id`` is a user or a team."""

    kind: str
    id: int
    login: str
    name: Optional[str] = None
    avatar: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "Owner":
        return cls(kind=OWNER_KIND_USER, id=user.id, login=user.login, name=user.name, avatar=user.avatar)

    @classmethod
    def from_team(cls, team: Team) -> "Owner":
        return cls(kind=OWNER_KIND_TEAM, id=team.id, login=team.login, name=team.name, avatar=team.avatar)

    def encode(self) -> EncodableOwner:
        return EncodableOwner(id=self.id, login=self.login, kind=self.kind, name=self.name, avatar=self.avatar)

    def to_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind,
            "id": self.id,
            "login": self.login,
            "name": self.name,
            "avatar": self.avatar,
        }


def require_user(user_id: Optional[int], *, session: Session, users: Optional[UserRepository] = None) -> User:
    if user_id is None:
        raise RegistryAuthorizationError("must be logged in to perform that action")
    user = (users or UserRepository()).get_by_id(user_id=user_id, session=session)
    if user is None:
        raise RegistryAuthorizationError("must be logged in to perform that action")
    return user


class OwnershipService:
    def __init__(
        self,
        owners: Optional[CrateOwnerRepository] = None,
        users: Optional[UserRepository] = None,
        teams: Optional[TeamRepository] = None,
        directory: Optional[TeamDirectory] = None,
        store: Optional[CrateStore] = None,
    ) -> None:
        self._owners = owners or CrateOwnerRepository()
        self._users = users or UserRepository()
        self._teams = teams or TeamRepository()
        self._directory = directory or DatabaseTeamDirectory()
        self._store = store or CrateStore()

    def owners(self, crate: Crate, *, session: Session) -> list[Owner]:
        users = self._owners.list_user_owners(crate_id=crate.id, session=session)
        teams = self._owners.list_team_owners(crate_id=crate.id, session=session)
        return [Owner.from_user(user) for user in users] + [Owner.from_team(team) for team in teams]

    def rights(self, owners: Iterable[Owner], actor: User, *, session: Session) -> Rights:
        """Best rights ``actor`` holds through ``owners``.

        Being a listed user owner grants :attr:`Rights.FULL`; membership in a
        listed team grants :attr:`Rights.PUBLISH`.
        """

        best = Rights.NONE
        for owner in owners:
            if owner.kind == OWNER_KIND_USER:
                if owner.id == actor.id:
                    return Rights.FULL
            elif owner.kind == OWNER_KIND_TEAM:
                team = session.get(Team, owner.id)
                if team is not None and self._directory.is_member(team, actor, session=session):
                    best = Rights.PUBLISH
        return best

    def _resolve_owner(self, login: str, *, session: Session) -> tuple[Optional[int], str]:
        if is_team_login(login):
            team = self._teams.get_by_login(login=login, session=session)
            return (team.id if team else None), OWNER_KIND_TEAM
        user = self._users.get_by_login(login=login, session=session)
        return (user.id if user else None), OWNER_KIND_USER

    def owner_add(self, crate: Crate, requesting_user: User, login: str, *, session: Session) -> Owner:
        if is_team_login(login):
            team = self._teams.get_by_login(login=login, session=session)
            if team is not None:
                if not self._directory.is_member(team, requesting_user, session=session):
                    raise RegistryAuthorizationError(f"only members of {login} can add it as an owner")
            else:
                team = self._directory.resolve_or_create_team(login, requesting_user, session=session)
            owner = Owner.from_team(team)
        else:
            user = self._users.get_by_login(login=login, session=session)
            if user is None:
                raise RegistryNotFoundError(f"could not find user with login `{login}`")
            owner = Owner.from_user(user)

        restored = self._owners.undelete(
            crate_id=crate.id,
            owner_id=owner.id,
            owner_kind=owner.kind,
            session=session,
        )
        if not restored:
            self._owners.insert(
                crate_id=crate.id,
                owner_id=owner.id,
                owner_kind=owner.kind,
                created_by=requesting_user.id,
                session=session,
            )
        LOGGER.info("Added %s owner %s to crate %s", owner.kind, owner.login, crate.name)
        return owner

    def owner_remove(self, crate: Crate, login: str, *, session: Session) -> None:
        owner_id, kind = self._resolve_owner(login, session=session)
        if owner_id is None:
            raise RegistryNotFoundError(f"could not find owner with login `{login}`")
        self._owners.soft_delete(crate_id=crate.id, owner_id=owner_id, owner_kind=kind, session=session)
        LOGGER.info("Removed %s owner %s from crate %s", kind, login, crate.name)

    def list_owners(self, crate_name: str) -> OwnerList:
        def _list(session):
            crate = self._store.find_by_name(crate_name, session=session)
            return OwnerList(users=[owner.encode() for owner in self.owners(crate, session=session)])

        return run_in_session(_list)

    def modify_owners(self, crate_name: str, logins: list[str], *, actor_id: Optional[int], add: bool) -> None:
        """Add or remove ``logins`` on behalf of ``actor_id`` in one transaction."""

        def _modify(session):
            actor = require_user(actor_id, session=session, users=self._users)
            crate = self._store.find_by_name(crate_name, session=session)
            owners = self.owners(crate, session=session)
            rights = self.rights(owners, actor, session=session)
            if rights < Rights.PUBLISH:
                raise RegistryAuthorizationError("only owners have permission to modify owners")
            if not add and rights < Rights.FULL:
                raise RegistryAuthorizationError("team members don't have permission to remove owners")

            current = {owner.login for owner in owners}
            for login in logins:
                if add:
                    if login in current:
                        raise RegistryValidationError(f"`{login}` is already an owner")
                    self.owner_add(crate, actor, login, session=session)
                    current.add(login)
                else:
                    if login == actor.login:
                        raise RegistryValidationError("cannot remove yourself as an owner")
                    self.owner_remove(crate, login, session=session)

        run_in_session(_modify)

    def add_owners(self, crate_name: str, logins: list[str], *, actor_id: Optional[int]) -> None:
        self.modify_owners(crate_name, logins, actor_id=actor_id, add=True)

    def remove_owners(self, crate_name: str, logins: list[str], *, actor_id: Optional[int]) -> None:
        self.modify_owners(crate_name, logins, actor_id=actor_id, add=False)


__all__ = ["Owner", "OwnershipService", "Rights", "require_user"]
