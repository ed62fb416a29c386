# coding: utf-8

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from .base import RegistryModel


class EncodableDependency(RegistryModel):
    id: int
    version_id: int
    crate_id: str = Field(description="Name of the crate this edge points at, or the dependent crate for reverse lookups.")
    req: str
    optional: bool
    default_features: bool
    features: List[str] = Field(default_factory=list)
    target: Optional[str] = None
    kind: str
    downloads: int = 0
