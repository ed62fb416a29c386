# coding: utf-8

"""Envelopes wrapping encoded registry resources."""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from .base import RegistryModel
from .category import EncodableCategory
from .crate import EncodableCrate
from .dependency import EncodableDependency
from .keyword import EncodableKeyword
from .owner import EncodableOwner
from .version import EncodableVersion
from .version_download import EncodableVersionDownload


class ListMeta(RegistryModel):
    total: int


class CrateList(RegistryModel):
    crates: List[EncodableCrate] = Field(default_factory=list)
    meta: ListMeta


class PublishWarnings(RegistryModel):
    invalid_categories: List[str] = Field(default_factory=list)
    invalid_badges: List[str] = Field(default_factory=list)


class PublishResponse(RegistryModel):
    krate: EncodableCrate = Field(alias="crate")
    warnings: PublishWarnings


class CrateDetail(RegistryModel):
    krate: EncodableCrate = Field(alias="crate")
    versions: List[EncodableVersion] = Field(default_factory=list)
    keywords: List[EncodableKeyword] = Field(default_factory=list)
    categories: List[EncodableCategory] = Field(default_factory=list)


class VersionList(RegistryModel):
    versions: List[EncodableVersion] = Field(default_factory=list)


class OwnerList(RegistryModel):
    users: List[EncodableOwner] = Field(default_factory=list)


class OwnersRequest(RegistryModel):
    owners: Optional[List[str]] = None
    users: Optional[List[str]] = None

    def logins(self) -> Optional[List[str]]:
        if self.owners is not None:
            return self.owners
        return self.users


class DependencyList(RegistryModel):
    dependencies: List[EncodableDependency] = Field(default_factory=list)
    meta: ListMeta


class ExtraDownload(RegistryModel):
    date: str
    downloads: int


class DownloadsMeta(RegistryModel):
    extra_downloads: List[ExtraDownload] = Field(default_factory=list)


class DownloadsResponse(RegistryModel):
    version_downloads: List[EncodableVersionDownload] = Field(default_factory=list)
    meta: DownloadsMeta


class DownloadLocation(RegistryModel):
    url: str


class Summary(RegistryModel):
    num_downloads: int
    num_crates: int
    new_crates: List[EncodableCrate] = Field(default_factory=list)
    most_downloaded: List[EncodableCrate] = Field(default_factory=list)
    just_updated: List[EncodableCrate] = Field(default_factory=list)
    popular_keywords: List[EncodableKeyword] = Field(default_factory=list)
    popular_categories: List[EncodableCategory] = Field(default_factory=list)


class OkResponse(RegistryModel):
    ok: bool = True


class FollowingResponse(RegistryModel):
    following: bool
