"""Team membership checks backed by the mirrored membership table."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from sqlalchemy.orm import Session

from crates_api.db.models import Team, User
from crates_api.errors import (
    RegistryAuthorizationError,
    RegistryNotFoundError,
    RegistryValidationError,
)
from crates_api.repo.accounts import TeamMembershipRepository, TeamRepository

LOGGER = logging.getLogger(__name__)

TEAM_LOGIN_SEPARATOR = ":"


def is_team_login(login: str) -> bool:
    return TEAM_LOGIN_SEPARATOR in login


class TeamDirectory(Protocol):
    def is_member(self, team: Team, user: User, *, session: Session) -> bool:
        ...

    def resolve_or_create_team(self, login: str, requesting_user: User, *, session: Session) -> Team:
        ...


class DatabaseTeamDirectory:
    """Answers membership from ``team_memberships`` keyed by ``namespace:org:team`` logins."""

    def __init__(
        self,
        teams: Optional[TeamRepository] = None,
        memberships: Optional[TeamMembershipRepository] = None,
    ) -> None:
        self._teams = teams or TeamRepository()
        self._memberships = memberships or TeamMembershipRepository()

    def is_member(self, team: Team, user: User, *, session: Session) -> bool:
        return self._memberships.is_member(team_login=team.login, user_id=user.id, session=session)

    def resolve_or_create_team(self, login: str, requesting_user: User, *, session: Session) -> Team:
        parts = login.split(TEAM_LOGIN_SEPARATOR)
        if len(parts) != 3 or not all(parts):
            raise RegistryValidationError(
                f"team login `{login}` must look like `namespace:org:team`"
            )
        existing = self._teams.get_by_login(login=login, session=session)
        if existing is not None:
            return existing
        members = self._memberships.list_member_ids(team_login=login, session=session)
        if not members:
            raise RegistryNotFoundError(f"could not find the team `{login}`")
        if requesting_user.id not in members:
            raise RegistryAuthorizationError("only members of a team can add it as an owner")
        team = self._teams.create(login=login, name=parts[2], session=session)
        LOGGER.info("Registered team %s on behalf of %s", login, requesting_user.login)
        return team


__all__ = ["DatabaseTeamDirectory", "TeamDirectory", "is_team_login"]
