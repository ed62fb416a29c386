import pytest

from crates_api.licenses import LicenseExpressionError, validate, validate_license


@pytest.mark.parametrize("license", ["MIT", "Apache-2.0", "MIT OR Apache-2.0", "MIT/Apache-2.0"])
def test_accepts_spdx_expressions(license):
    validate_license(license)


@pytest.mark.parametrize(
    "license",
    ["NOT-A-LICENSE", "MIT/NOT-A-LICENSE", "MIT OR", "MIT AND", "Apache-2.0/MIT AND", "MIT/"],
)
def test_rejects_invalid_expressions(license):
    with pytest.raises(LicenseExpressionError):
        validate_license(license)


def test_empty_fragment_is_rejected():
    with pytest.raises(LicenseExpressionError, match="empty license expression"):
        validate("  ")
