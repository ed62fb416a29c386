# coding: utf-8

from __future__ import annotations

from typing import Literal, Optional

from .base import RegistryModel


class EncodableOwner(RegistryModel):
    id: int
    login: str
    kind: Literal["user", "team"]
    name: Optional[str] = None
    avatar: Optional[str] = None
