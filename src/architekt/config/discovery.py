"""Config file discovery and loading.

``architekt.toml`` is located by walking up from the working directory.
The ``ARCHITEKT_CONFIG`` env var pins an explicit file instead.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_FILENAME = "architekt.toml"
CONFIG_ENV_VAR = "ARCHITEKT_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the nearest ``architekt.toml`` at or above *start*, or None.

    When ``ARCHITEKT_CONFIG`` is set, it is the only candidate.
    """
    pinned = os.environ.get(CONFIG_ENV_VAR)
    if pinned:
        path = Path(pinned)
        return path if path.is_file() else None

    directory = (start or Path.cwd()).resolve()
    for candidate_dir in (directory, *directory.parents):
        candidate = candidate_dir / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def read_toml(path: Path) -> dict[str, Any]:
    """Parse *path* as TOML.

    Raises:
        ValueError: The file is not valid TOML.
    """
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ValueError(msg) from exc
