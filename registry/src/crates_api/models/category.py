# coding: utf-8

from __future__ import annotations

from .base import RegistryModel


class EncodableCategory(RegistryModel):
    id: str
    category: str
    slug: str
    description: str
    created_at: str
    crates_cnt: int
