# coding: utf-8

"""Metadata document sent by clients in the publish envelope."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import Field

from .base import RegistryModel


class NewCrateDependency(RegistryModel):
    name: str
    version_req: str = Field(description="Version requirement string, passed through unparsed.")
    features: List[str] = Field(default_factory=list)
    optional: bool = False
    default_features: bool = True
    target: Optional[str] = None
    kind: Optional[Literal["normal", "build", "dev"]] = None


class NewCrate(RegistryModel):
    name: str
    vers: str
    deps: List[NewCrateDependency] = Field(default_factory=list)
    features: Dict[str, List[str]] = Field(default_factory=dict)
    authors: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    homepage: Optional[str] = None
    documentation: Optional[str] = None
    readme: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    license: Optional[str] = None
    license_file: Optional[str] = None
    repository: Optional[str] = None
    badges: Dict[str, Dict[str, str]] = Field(default_factory=dict)
