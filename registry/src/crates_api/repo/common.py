from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def _now() -> datetime:
    return datetime.now(timezone.utc)


def dialect_insert(session: Session, model):
    """Return an ``INSERT`` construct that supports ``ON CONFLICT`` for the bound dialect."""

    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise RuntimeError(f"insert-or-ignore is not supported on the {dialect} dialect")


LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """Escape ``LIKE`` wildcards in ``value``; pair with ``escape=LIKE_ESCAPE``."""

    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
