# coding: utf-8

from __future__ import annotations

from typing import Dict, List

from pydantic import Field

from .base import RegistryModel


class VersionLinks(RegistryModel):
    dependencies: str
    version_downloads: str
    authors: str


class EncodableVersion(RegistryModel):
    id: int
    crate: str = Field(description="Display name of the owning crate.")
    num: str
    dl_path: str
    updated_at: str
    created_at: str
    downloads: int
    features: Dict[str, List[str]] = Field(default_factory=dict)
    yanked: bool
    links: VersionLinks
