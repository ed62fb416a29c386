"""Registry configuration using pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import Field, PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict

MIRROR_PRIMARY = "primary"
MIRROR_READ_ONLY = "read_only_mirror"


class RegistryApiSettings(BaseSettings):
    """Process/runtime settings for the registry API server."""

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="CRATES_REGISTRY_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="127.0.0.1", description="Bind address for the registry API.")
    port: PositiveInt = Field(default=8320, description="Port for the registry API.")
    reload: bool = Field(default=False, description="Enable uvicorn auto-reload (dev only).")
    log_level: Literal["critical", "error", "warning", "info", "debug", "trace"] = Field(
        default="info",
        description="Log level for registry API / uvicorn.",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:4200", "http://127.0.0.1:4200"],
        description="Origins allowed to call the API from a browser.",
    )


class RegistrySettings(BaseSettings):
    """Validated settings for the registry core."""

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="CRATES_REGISTRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str | None = Field(
        default=None,
        description="SQLAlchemy URL; defaults to a SQLite file under var/data.",
    )
    storage_root: Path | None = Field(
        default=None,
        description="Directory holding uploaded .crate artifacts.",
    )
    index_root: Path | None = Field(
        default=None,
        description="Directory holding the package index checkout.",
    )
    artifact_base_url: str = Field(
        default="/crates",
        description="URL prefix used when redirecting downloads to stored artifacts.",
    )
    max_upload_size: PositiveInt = Field(
        default=10 * 1024 * 1024,
        description="Default upload limit in bytes when a crate has no override.",
    )
    mirror: Literal["primary", "read_only_mirror"] = Field(
        default=MIRROR_PRIMARY,
        description="Deployment mode; read-only mirrors ignore download accounting failures.",
    )
    page_size_default: PositiveInt = Field(default=10, description="Default page size for listings.")
    page_size_max: PositiveInt = Field(default=100, description="Largest accepted page size.")

    @property
    def is_read_only_mirror(self) -> bool:
        return self.mirror == MIRROR_READ_ONLY


@lru_cache()
def get_settings() -> RegistrySettings:
    """Return memoized registry settings."""

    return RegistrySettings()


@lru_cache()
def get_api_settings() -> RegistryApiSettings:
    """Return memoized API process settings."""

    return RegistryApiSettings()
