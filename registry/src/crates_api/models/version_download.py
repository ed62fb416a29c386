# coding: utf-8

from __future__ import annotations

from .base import RegistryModel


class EncodableVersionDownload(RegistryModel):
    id: int
    version: int
    downloads: int
    date: str
