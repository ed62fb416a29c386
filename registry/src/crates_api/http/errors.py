"""Shared error helpers for HTTP APIs."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from fastapi import HTTPException, status

from crates_api.errors import (
    RegistryAuthorizationError,
    RegistryError,
    RegistryExternalError,
    RegistryNotFoundError,
    RegistryValidationError,
)
from crates_api.models.error import Error

LOGGER = logging.getLogger(__name__)

_STATUS_ERROR_CODES: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_500_INTERNAL_SERVER_ERROR: "internal_error",
}


def error_payload(
    message: str,
    *,
    error: Optional[str] = None,
    status_code: Optional[int] = None,
    details: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    resolved_error = error or _STATUS_ERROR_CODES.get(status_code or 0, "error")
    return Error(
        error=resolved_error,
        message=message,
        details=details,
    ).model_dump(by_alias=True, exclude_none=True)


def http_error(
    status_code: int,
    message: str,
    *,
    error: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
) -> HTTPException:
    payload = error_payload(
        message,
        error=error,
        status_code=status_code,
        details=details,
    )
    return HTTPException(status_code=status_code, detail=payload)


def bad_request(message: str, *, error: Optional[str] = None) -> HTTPException:
    return http_error(status.HTTP_400_BAD_REQUEST, message, error=error)


def unauthorized(message: str, *, error: Optional[str] = None) -> HTTPException:
    return http_error(status.HTTP_401_UNAUTHORIZED, message, error=error)


def forbidden(message: str, *, error: Optional[str] = None) -> HTTPException:
    return http_error(status.HTTP_403_FORBIDDEN, message, error=error)


def not_found(message: str, *, error: Optional[str] = None) -> HTTPException:
    return http_error(status.HTTP_404_NOT_FOUND, message, error=error)


def internal_error(message: str, *, error: Optional[str] = None) -> HTTPException:
    return http_error(status.HTTP_500_INTERNAL_SERVER_ERROR, message, error=error)


def to_http_error(exc: RegistryError) -> HTTPException:
    message = str(exc)
    if isinstance(exc, RegistryValidationError):
        return bad_request(message)
    if isinstance(exc, RegistryNotFoundError):
        return not_found(message)
    if isinstance(exc, RegistryAuthorizationError):
        return forbidden(message)
    if isinstance(exc, RegistryExternalError):
        return internal_error(message, error="external_error")
    return internal_error(message)


@contextmanager
def registry_errors() -> Iterator[None]:
    """Translate registry errors raised in the block into HTTP errors."""

    try:
        yield
    except RegistryError as exc:
        if isinstance(exc, RegistryExternalError):
            LOGGER.warning("Registry collaborator failed: %s", exc, exc_info=True)
        raise to_http_error(exc) from exc


__all__ = [
    "bad_request",
    "error_payload",
    "forbidden",
    "http_error",
    "internal_error",
    "not_found",
    "registry_errors",
    "to_http_error",
    "unauthorized",
]
