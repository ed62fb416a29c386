"""Public exports for registry wire models."""

from __future__ import annotations

from crates_api.models.badge import EncodableBadge
from crates_api.models.category import EncodableCategory
from crates_api.models.crate import CrateLinks, EncodableCrate
from crates_api.models.dependency import EncodableDependency
from crates_api.models.error import Error
from crates_api.models.keyword import EncodableKeyword
from crates_api.models.new_crate import NewCrate, NewCrateDependency
from crates_api.models.owner import EncodableOwner
from crates_api.models.responses import (
    CrateDetail,
    CrateList,
    DependencyList,
    DownloadLocation,
    DownloadsMeta,
    DownloadsResponse,
    ExtraDownload,
    FollowingResponse,
    ListMeta,
    OkResponse,
    OwnerList,
    OwnersRequest,
    PublishResponse,
    PublishWarnings,
    Summary,
    VersionList,
)
from crates_api.models.version import EncodableVersion, VersionLinks
from crates_api.models.version_download import EncodableVersionDownload

__all__ = [
    "CrateDetail",
    "CrateLinks",
    "CrateList",
    "DependencyList",
    "DownloadLocation",
    "DownloadsMeta",
    "DownloadsResponse",
    "EncodableBadge",
    "EncodableCategory",
    "EncodableCrate",
    "EncodableDependency",
    "EncodableKeyword",
    "EncodableOwner",
    "EncodableVersion",
    "EncodableVersionDownload",
    "Error",
    "ExtraDownload",
    "FollowingResponse",
    "ListMeta",
    "NewCrate",
    "NewCrateDependency",
    "OkResponse",
    "OwnerList",
    "OwnersRequest",
    "PublishResponse",
    "PublishWarnings",
    "Summary",
    "VersionLinks",
    "VersionList",
]
