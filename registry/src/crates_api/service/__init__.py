"""Service layer."""

from .crate_metadata import CrateMetadataService
from .crates import CrateDraft, CrateStore
from .downloads import DownloadService
from .facade import RegistryServiceFacade, get_registry_services
from .follows import FollowService
from .listing import CrateQuery, ListingService
from .ownership import Owner, OwnershipService, Rights
from .publish import PublishService
from .versions import VersionLinker

__all__ = [
    "CrateDraft",
    "CrateMetadataService",
    "CrateQuery",
    "CrateStore",
    "DownloadService",
    "FollowService",
    "ListingService",
    "Owner",
    "OwnershipService",
    "PublishService",
    "RegistryServiceFacade",
    "Rights",
    "VersionLinker",
    "get_registry_services",
]
