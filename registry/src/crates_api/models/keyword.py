# coding: utf-8

from __future__ import annotations

from .base import RegistryModel


class EncodableKeyword(RegistryModel):
    id: str
    keyword: str
    created_at: str
    crates_cnt: int
