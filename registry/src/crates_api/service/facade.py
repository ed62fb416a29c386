"""Facade wiring the registry services around shared collaborators."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from crates_api.package_index import LocalPackageIndex, PackageIndex
from crates_api.storage import ArtifactStore, LocalArtifactStore
from crates_api.teams import DatabaseTeamDirectory, TeamDirectory

from .crates import CrateStore
from .downloads import DownloadService
from .follows import FollowService
from .listing import ListingService
from .ownership import OwnershipService
from .publish import PublishService


class RegistryServiceFacade:
    def __init__(
        self,
        *,
        artifacts: Optional[ArtifactStore] = None,
        index: Optional[PackageIndex] = None,
        directory: Optional[TeamDirectory] = None,
    ) -> None:
        self.artifacts = artifacts or LocalArtifactStore()
        self.index = index or LocalPackageIndex()
        self.crates = CrateStore()
        self.ownership = OwnershipService(directory=directory or DatabaseTeamDirectory(), store=self.crates)
        self.publisher = PublishService(
            store=self.crates,
            ownership=self.ownership,
            artifacts=self.artifacts,
            index=self.index,
        )
        self.listing = ListingService(store=self.crates)
        self.downloads = DownloadService(store=self.crates, artifacts=self.artifacts)
        self.follows = FollowService(store=self.crates)


@lru_cache()
def get_registry_services() -> RegistryServiceFacade:
    return RegistryServiceFacade()


__all__ = ["RegistryServiceFacade", "get_registry_services"]
