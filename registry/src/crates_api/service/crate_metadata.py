"""Keywords, categories and badges attached to a crate on publish."""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

from sqlalchemy.orm import Session

from crates_api.db.models import Crate
from crates_api.errors import RegistryValidationError
from crates_api.naming import valid_keyword
from crates_api.repo.metadata import BadgeRepository, CategoryRepository, KeywordRepository

# Badge type -> attributes that must be present.
BADGE_REQUIREMENTS: dict[str, tuple[str, ...]] = {
    "travis-ci": ("repository",),
    "appveyor": ("repository",),
    "gitlab": ("repository",),
    "circle-ci": ("repository",),
    "codecov": ("repository",),
    "coveralls": ("repository",),
    "is-it-maintained-issue-resolution": ("repository",),
    "is-it-maintained-open-issues": ("repository",),
    "maintenance": ("status",),
}


class CrateMetadataService:
    def __init__(
        self,
        keywords: Optional[KeywordRepository] = None,
        categories: Optional[CategoryRepository] = None,
        badges: Optional[BadgeRepository] = None,
    ) -> None:
        self._keywords = keywords or KeywordRepository()
        self._categories = categories or CategoryRepository()
        self._badges = badges or BadgeRepository()

    def update_keywords(self, crate: Crate, keywords: Sequence[str], *, session: Session) -> None:
        for keyword in keywords:
            if not valid_keyword(keyword):
                raise RegistryValidationError(f"invalid keyword specified: `{keyword}`")
        rows = self._keywords.find_or_create_all(names=keywords, session=session)
        self._keywords.replace_for_crate(crate_id=crate.id, keywords=rows, session=session)

    def update_categories(self, crate: Crate, slugs: Sequence[str], *, session: Session) -> list[str]:
        """Replace the crate's categories; returns the slugs that matched nothing."""

        wanted = list(dict.fromkeys(slugs))
        found = self._categories.get_by_slugs(slugs=wanted, session=session)
        known = {category.slug for category in found}
        self._categories.replace_for_crate(crate_id=crate.id, categories=found, session=session)
        return [slug for slug in wanted if slug not in known]

    def update_badges(
        self,
        crate: Crate,
        badges: Mapping[str, Mapping[str, str]],
        *,
        session: Session,
    ) -> list[str]:
        """Replace the crate's badges; returns the badge types that were dropped."""

        accepted: dict[str, dict[str, str]] = {}
        invalid: list[str] = []
        for badge_type, attributes in badges.items():
            required = BADGE_REQUIREMENTS.get(badge_type)
            if required is None or any(not attributes.get(name) for name in required):
                invalid.append(badge_type)
                continue
            accepted[badge_type] = dict(attributes)
        self._badges.replace_for_crate(crate_id=crate.id, badges=accepted, session=session)
        return invalid


__all__ = ["BADGE_REQUIREMENTS", "CrateMetadataService"]
