"""Filesystem persistence backend: JSON store with rolling backups.

On-disk shape: ``{user_id: aggregate}`` pretty-printed with 2-space
indent. A legacy single-tenant file (top-level ``projects`` key) is read
as the aggregate of the default user and rewritten in the keyed
shape on the next save.

Every save:

1. copies the current file (if any) to
   ``<backup_dir>/store-backup-<timestamp>.json`` and prunes the oldest
   backups (by modification time) beyond ``max_backups``;
2. writes the new store to a temp file in the same directory and
   ``os.replace``\\ s it over the data file, so readers never observe a
   partially written store.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from architekt.domain.models import DomainAggregate
from architekt.domain.sanitize import validate_domain_aggregate
from architekt.infrastructure.persistence.base import DEFAULT_USER_ID, sanitize_store

logger = logging.getLogger(__name__)

BACKUP_PREFIX = "store-backup-"
BACKUP_SUFFIX = ".json"


def backup_timestamp(now: datetime | None = None) -> str:
    """ISO 8601 UTC timestamp (millisecond precision) with ``:`` and ``.`` replaced by ``-``."""
    moment = now or datetime.now(UTC)
    return f"{moment:%Y-%m-%dT%H-%M-%S}-{moment.microsecond // 1000:03d}Z"


class FileSystemPersistence:
    """JSON-file store with atomic replace and timestamped backups.

    Args:
        data_file: Path of the JSON store.
        backup_dir: Where backups go. None disables backups.
        max_backups: Number of backups to keep. ``0`` disables backups.
        default_user_id: Tenant used when a call passes no user id.
    """

    def __init__(
        self,
        data_file: Path | str,
        *,
        backup_dir: Path | str | None = None,
        max_backups: int = 10,
        default_user_id: str = DEFAULT_USER_ID,
    ) -> None:
        self.data_file = Path(data_file)
        self.backup_dir = Path(backup_dir) if backup_dir is not None else None
        self.max_backups = max(0, max_backups)
        self.default_user_id = default_user_id

    # ------------------------------------------------------------------
    # PersistenceAdapter
    # ------------------------------------------------------------------

    def load(self, user_id: str | None = None) -> DomainAggregate:
        return self._read_store().get(user_id or self.default_user_id) or DomainAggregate()

    def save(self, aggregate: Any, user_id: str | None = None) -> None:
        user_id = user_id or self.default_user_id
        store = self._read_store()
        store[user_id] = validate_domain_aggregate(aggregate)
        payload = {uid: stored.to_json_dict() for uid, stored in store.items()}
        text = json.dumps(payload, indent=2, ensure_ascii=False) + "\n"

        self.data_file.parent.mkdir(parents=True, exist_ok=True)
        if self.data_file.exists():
            self._backup()
        self._write_atomic(text)
        logger.debug("Saved store for %s to %s", user_id, self.data_file)

    def load_all(self) -> dict[str, DomainAggregate]:
        """Every tenant's aggregate (export and migration tooling)."""
        return self._read_store()

    # ------------------------------------------------------------------
    # File helpers
    # ------------------------------------------------------------------

    def _read_store(self) -> dict[str, DomainAggregate]:
        try:
            raw = self.data_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        return sanitize_store(json.loads(raw), self.default_user_id)

    def _write_atomic(self, text: str) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=self.data_file.parent,
            prefix=f".{self.data_file.name}.",
            suffix=".tmp",
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.data_file)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    def _backup(self) -> Path | None:
        """Copy the current store into the backup directory."""
        if self.backup_dir is None or self.max_backups == 0:
            return None
        self.backup_dir.mkdir(parents=True, exist_ok=True)

        stem = f"{BACKUP_PREFIX}{backup_timestamp()}"
        backup_path = self.backup_dir / f"{stem}{BACKUP_SUFFIX}"
        counter = 1
        while backup_path.exists():
            backup_path = self.backup_dir / f"{stem}-{counter}{BACKUP_SUFFIX}"
            counter += 1

        shutil.copyfile(self.data_file, backup_path)
        self._prune_backups()
        return backup_path

    def list_backups(self) -> list[Path]:
        """Backups ordered oldest first."""
        if self.backup_dir is None or not self.backup_dir.exists():
            return []
        backups = self.backup_dir.glob(f"{BACKUP_PREFIX}*{BACKUP_SUFFIX}")
        return sorted(backups, key=lambda p: (p.stat().st_mtime_ns, p.name))

    def _prune_backups(self) -> None:
        """Remove the oldest backups beyond ``max_backups``."""
        backups = self.list_backups()
        excess = len(backups) - self.max_backups
        for old in backups[: max(0, excess)]:
            old.unlink(missing_ok=True)
            logger.debug("Pruned backup %s", old.name)
