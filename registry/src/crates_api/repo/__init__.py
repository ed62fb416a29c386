"""Repository layer for data access."""

from .accounts import TeamMembershipRepository, TeamRepository, UserRepository
from .crates import CrateRepository
from .downloads import VersionDownloadRepository
from .follows import FollowRepository
from .metadata import BadgeRepository, CategoryRepository, KeywordRepository
from .owners import CrateOwnerRepository
from .versions import DependencyRepository, VersionRepository

__all__ = [
    "BadgeRepository",
    "CategoryRepository",
    "CrateOwnerRepository",
    "CrateRepository",
    "DependencyRepository",
    "FollowRepository",
    "KeywordRepository",
    "TeamMembershipRepository",
    "TeamRepository",
    "UserRepository",
    "VersionDownloadRepository",
    "VersionRepository",
]
