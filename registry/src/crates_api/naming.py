"""Crate name canonicalization and validation.

Two names refer to the same registry slot when their canonical forms are
equal: ASCII case is folded and ``-`` is treated as ``_``. Canonical forms are
only used for lookups and uniqueness, never for display.
"""

from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.sql.elements import ColumnElement

MAX_KEYWORD_LENGTH = 20


def canonicalize(name: str) -> str:
    return name.lower().replace("-", "_")


def canonical_name_expr(column) -> ColumnElement[str]:
    """SQL counterpart of :func:`canonicalize` for columns holding display names."""

    return func.replace(func.lower(column), "-", "_")


def valid_name(name: str) -> bool:
    if not name or not name.isascii():
        return False
    if not name[0].isalpha():
        return False
    return all(ch.isalnum() or ch in "_-" for ch in name)


def valid_feature_name(name: str) -> bool:
    """Accept ``feature`` or ``dependency/feature`` where each part is a valid name."""

    parts = name.split("/")
    if len(parts) > 2:
        return False
    return all(valid_name(part) for part in parts)


def valid_keyword(keyword: str) -> bool:
    if not keyword or len(keyword) > MAX_KEYWORD_LENGTH or not keyword.isascii():
        return False
    if not keyword[0].isalnum():
        return False
    return all(ch.isalnum() or ch in "_-+" for ch in keyword)


__all__ = [
    "canonical_name_expr",
    "canonicalize",
    "valid_feature_name",
    "valid_keyword",
    "valid_name",
]
