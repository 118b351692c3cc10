"""Unified settings: init kwargs, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs: overrides passed by the embedding application
  2. Env vars: ``ARCHITEKT_*`` prefix, ``__`` for nested sections
     (e.g. ``ARCHITEKT_PERSISTENCE__DRIVER=memory``)
  3. TOML file: ``architekt.toml`` discovered via walk-up
  4. Code defaults: baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reuses the walk-up discovery from :mod:`architekt.config.discovery`.
"""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from architekt.config.discovery import find_config, read_toml
from architekt.config.models import PersistenceConfig, TenancyConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Top-level keys and ``[section]`` tables of one TOML file.

    Keys that are not settings fields are ignored, so a config file can be
    shared with other tools.
    """

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        raw = read_toml(toml_path) if toml_path and toml_path.is_file() else {}
        self._data: dict[str, Any] = {
            key: value for key, value in raw.items() if key in settings_cls.model_fields
        }

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return dict(self._data)


# TOML file chosen by ArchitektSettings.load for the construction in progress.
_pending_toml: ContextVar[Path | None] = ContextVar("architekt_pending_toml", default=None)


class ArchitektSettings(BaseSettings):
    """Settings for an engine deployment.

    Attributes:
        root: Base directory; relative persistence paths resolve
            against it (parent of ``architekt.toml``, or CWD).
        config_path: The TOML file in effect, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "ARCHITEKT_",
        "env_nested_delimiter": "__",
    }

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    verbose: bool = False
    log_json: bool = False

    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    tenancy: TenancyConfig = Field(default_factory=TenancyConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, _pending_toml.get()),
        )

    @classmethod
    def load(
        cls,
        *,
        config_path: str | Path | None = None,
        root: Path | None = None,
        **overrides: Any,
    ) -> ArchitektSettings:
        """Construct settings, discovering ``architekt.toml`` unless given.

        *root* defaults to the config file's directory, or CWD when no
        file is found. *overrides* take priority over every other source.
        """
        toml_path: Path | None = None
        if config_path:
            candidate = Path(config_path)
            if candidate.is_file():
                toml_path = candidate
        else:
            toml_path = find_config(root)

        resolved_root = root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        token = _pending_toml.set(toml_path)
        try:
            return cls(root=resolved_root, config_path=toml_path, **overrides)
        finally:
            _pending_toml.reset(token)

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    @property
    def data_dir_path(self) -> Path:
        return self.root / self.persistence.data_dir

    @property
    def data_file_path(self) -> Path:
        return self.data_dir_path / self.persistence.data_file

    @property
    def backup_dir_path(self) -> Path:
        if self.persistence.backup_dir:
            return self.root / self.persistence.backup_dir
        return self.data_dir_path / "backups"
