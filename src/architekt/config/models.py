"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, architekt.toml only contains
overrides. A fresh deployment needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class PersistenceConfig(BaseModel):
    """[persistence] section."""

    model_config = {"frozen": True}

    driver: str = "filesystem"
    data_dir: str = "data"
    data_file: str = "store.json"
    backup_dir: str | None = None
    max_backups: int = Field(default=10, ge=0)


class TenancyConfig(BaseModel):
    """[tenancy] section."""

    model_config = {"frozen": True}

    default_user_id: str = "local-user"
