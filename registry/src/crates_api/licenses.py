"""SPDX license expression validation."""

from __future__ import annotations

from license_expression import ExpressionError, get_spdx_licensing

NON_STANDARD_LICENSE = "non-standard"
LICENSE_HELP = (
    "see http://opensource.org/licenses for options, "
    "and http://spdx.org/licenses/ for their identifiers"
)

_LICENSING = get_spdx_licensing()


class LicenseExpressionError(ValueError):
    """Raised when a license expression fragment is not valid SPDX."""


def validate(fragment: str) -> None:
    """Validate one SPDX expression, raising :class:`LicenseExpressionError`."""

    if not fragment.strip():
        raise LicenseExpressionError("empty license expression")
    try:
        info = _LICENSING.validate(fragment)
    except ExpressionError as exc:
        raise LicenseExpressionError(str(exc)) from exc
    except Exception as exc:
        # Some dangling operators break inside the library's own error reporting.
        raise LicenseExpressionError(f"invalid license expression: `{fragment.strip()}`") from exc
    if info.errors:
        raise LicenseExpressionError("; ".join(info.errors))


def validate_license(license: str) -> None:
    """Validate a license field; ``/`` separates independently checked expressions."""

    for fragment in license.split("/"):
        validate(fragment)


__all__ = [
    "LICENSE_HELP",
    "LicenseExpressionError",
    "NON_STANDARD_LICENSE",
    "validate",
    "validate_license",
]
