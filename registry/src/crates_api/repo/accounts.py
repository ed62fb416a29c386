"""Repositories for users, teams and mirrored team membership."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from crates_api.db.models import Team, TeamMembership, User


class UserRepository:
    def get_by_id(self, *, user_id: int, session: Session) -> User | None:
        return session.get(User, user_id)

    def get_by_login(self, *, login: str, session: Session) -> User | None:
        stmt = select(User).where(User.login == login)
        return session.execute(stmt).scalars().first()

    def get_by_token(self, *, token: str, session: Session) -> User | None:
        stmt = select(User).where(User.api_token == token)
        return session.execute(stmt).scalars().first()

    def create(
        self,
        *,
        login: str,
        api_token: str,
        name: str | None = None,
        email: str | None = None,
        avatar: str | None = None,
        session: Session,
    ) -> User:
        user = User(login=login, api_token=api_token, name=name, email=email, avatar=avatar)
        session.add(user)
        session.flush()
        return user


class TeamRepository:
    def get_by_login(self, *, login: str, session: Session) -> Team | None:
        stmt = select(Team).where(Team.login == login)
        return session.execute(stmt).scalars().first()

    def create(
        self,
        *,
        login: str,
        name: str | None = None,
        avatar: str | None = None,
        session: Session,
    ) -> Team:
        team = Team(login=login, name=name, avatar=avatar)
        session.add(team)
        session.flush()
        return team


class TeamMembershipRepository:
    def is_member(self, *, team_login: str, user_id: int, session: Session) -> bool:
        stmt = select(TeamMembership).where(
            TeamMembership.team_login == team_login,
            TeamMembership.user_id == user_id,
        )
        return session.execute(stmt).scalars().first() is not None

    def list_member_ids(self, *, team_login: str, session: Session) -> list[int]:
        stmt = select(TeamMembership.user_id).where(TeamMembership.team_login == team_login)
        return list(session.execute(stmt).scalars().all())

    def add_member(self, *, team_login: str, user_id: int, session: Session) -> None:
        if self.is_member(team_login=team_login, user_id=user_id, session=session):
            return
        session.add(TeamMembership(team_login=team_login, user_id=user_id))
        session.flush()
