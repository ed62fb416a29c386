# coding: utf-8

from __future__ import annotations

from typing import Dict

from pydantic import Field

from .base import RegistryModel


class EncodableBadge(RegistryModel):
    badge_type: str
    attributes: Dict[str, str] = Field(default_factory=dict)
