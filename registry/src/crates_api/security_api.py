# coding: utf-8

from typing import Optional

from fastapi import Depends
from fastapi.security.api_key import APIKeyHeader

from crates_api.db.session import run_in_session
from crates_api.http.errors import unauthorized
from crates_api.repo.accounts import UserRepository

# Cargo sends the raw token; browsers and scripts may send ``Bearer <token>``.
api_token_header = APIKeyHeader(name="Authorization", auto_error=False)

_BEARER_PREFIX = "bearer "
_users = UserRepository()


def _strip_scheme(value: str) -> str:
    value = value.strip()
    if value.lower().startswith(_BEARER_PREFIX):
        return value[len(_BEARER_PREFIX):].strip()
    return value


def resolve_token(token: str) -> Optional[int]:
    def _resolve(session):
        user = _users.get_by_token(token=token, session=session)
        return user.id if user else None

    return run_in_session(_resolve)


def get_current_actor(header: Optional[str] = Depends(api_token_header)) -> Optional[int]:
    """
    Resolve the ``Authorization`` header to a user id.

    Anonymous requests resolve to ``None``; an unknown token is rejected.
    """

    if not header:
        return None
    token = _strip_scheme(header)
    if not token:
        return None
    actor_id = resolve_token(token)
    if actor_id is None:
        raise unauthorized("invalid API token")
    return actor_id


def require_actor(actor_id: Optional[int] = Depends(get_current_actor)) -> int:
    if actor_id is None:
        raise unauthorized("must be logged in to perform that action")
    return actor_id
