"""Persistence backends and the factory that picks one from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from architekt.infrastructure.persistence.base import (
    DEFAULT_USER_ID,
    PersistenceAdapter,
    sanitize_store,
)
from architekt.infrastructure.persistence.filesystem import FileSystemPersistence
from architekt.infrastructure.persistence.memory import MemoryPersistence

if TYPE_CHECKING:
    from architekt.config.settings import ArchitektSettings

__all__ = [
    "DEFAULT_USER_ID",
    "FileSystemPersistence",
    "MemoryPersistence",
    "PersistenceAdapter",
    "create_persistence",
    "sanitize_store",
]


def create_persistence(settings: ArchitektSettings) -> PersistenceAdapter:
    """Build the backend named by ``settings.persistence.driver``.

    The backend serves ``settings.tenancy.default_user_id`` when a call
    names no tenant.

    Raises:
        ValueError: Unknown driver.
    """
    config = settings.persistence
    user_id = settings.tenancy.default_user_id
    match config.driver:
        case "filesystem":
            return FileSystemPersistence(
                settings.data_file_path,
                backup_dir=settings.backup_dir_path,
                max_backups=config.max_backups,
                default_user_id=user_id,
            )
        case "memory":
            return MemoryPersistence(default_user_id=user_id)
        case _:
            msg = f"Unsupported persistence driver: {config.driver!r}"
            raise ValueError(msg)
