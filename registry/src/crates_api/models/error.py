# coding: utf-8

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import Field

from .base import RegistryModel


class Error(RegistryModel):
    error: str = Field(description="Machine readable error code.")
    message: str = Field(description="Human readable error message.")
    details: Optional[Dict[str, Any]] = None
