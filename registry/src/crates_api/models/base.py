# coding: utf-8

"""Shared base for registry wire models."""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel

try:
    from typing import Self
except ImportError:
    from typing_extensions import Self


class RegistryModel(BaseModel):
    model_config = {
        "populate_by_name": True,
        "validate_assignment": True,
        "protected_namespaces": (),
    }

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, json_str: str) -> Self:
        return cls.model_validate_json(json_str)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> Self:
        if obj is None:
            return None
        return cls.model_validate(obj)
