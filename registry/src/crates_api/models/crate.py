# coding: utf-8

"""Encoded crate representation returned by listing, show and publish."""

from __future__ import annotations

from typing import List, Optional

from .badge import EncodableBadge
from .base import RegistryModel


class CrateLinks(RegistryModel):
    version_downloads: str
    versions: Optional[str] = None
    owners: Optional[str] = None
    reverse_dependencies: str


class EncodableCrate(RegistryModel):
    id: str
    name: str
    updated_at: str
    versions: Optional[List[int]] = None
    keywords: Optional[List[str]] = None
    categories: Optional[List[str]] = None
    badges: Optional[List[EncodableBadge]] = None
    created_at: str
    downloads: int
    max_version: str
    description: Optional[str] = None
    homepage: Optional[str] = None
    documentation: Optional[str] = None
    license: Optional[str] = None
    repository: Optional[str] = None
    links: CrateLinks
