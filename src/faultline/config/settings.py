"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags or explicit SDK arguments
  2. Env vars     — ``FAULTLINE_*`` prefix, ``__`` for nested sections
  3. TOML file    — ``faultline.toml`` discovered via walk-up
  4. Code defaults — baked into the section models

Local ``defaults`` seed ``Configuration.settings`` before any server
settings are merged on top of them.
"""

from __future__ import annotations

import os
import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from faultline.config.models import PluginsConfig, ServerConfig, StorageConfig
from faultline.domain.errors import ConfigurationError

CONFIG_FILENAME = "faultline.toml"
CONFIG_ENV_VAR = "FAULTLINE_CONFIG"


def locate_config(config_path: str | None = None, start: Path | None = None) -> Path | None:
    """Pick the TOML file to load, or None.

    An explicit *config_path* wins, then ``FAULTLINE_CONFIG``, then the
    nearest ``faultline.toml`` in *start* (default: CWD) or its parents.
    A named file that does not exist means "no config file", never a
    fallback to discovery.
    """
    named = config_path or os.environ.get(CONFIG_ENV_VAR)
    if named:
        path = Path(named)
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    candidates = (directory / CONFIG_FILENAME for directory in (here, *here.parents))
    return next((c for c in candidates if c.is_file()), None)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``faultline.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise ConfigurationError(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class FaultlineSettings(BaseSettings):
    """Unified settings for the faultline SDK and CLI.

    Attributes:
        api_key: Project API key. Without it every settings operation is
            a logged no-op.
        root: Directory relative storage paths resolve against (parent of
            ``faultline.toml``, or CWD if no config found).
        defaults: Local default settings, overridden by server settings.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "FAULTLINE_",
        "env_nested_delimiter": "__",
    }

    api_key: str | None = None
    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    verbose: bool = False
    log_json: bool = False
    sync: bool = False

    # --- TOML sections ---
    server: ServerConfig = Field(default_factory=ServerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
    defaults: dict[str, str] = Field(default_factory=dict)

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
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @property
    def storage_dir(self) -> Path:
        """Absolute directory for the SQLite settings store."""
        path = self.storage.path
        return path if path.is_absolute() else self.root / path

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        root: Path | None = None,
        **overrides: Any,
    ) -> FaultlineSettings:
        """Construct settings from a CLI invocation or SDK bootstrap.

        Discovers ``faultline.toml`` via walk-up (or explicit *config_path*),
        resolves *root* from the config file's parent directory, and merges
        *overrides* as highest-priority values.
        """
        toml_path = locate_config(config_path, root)

        resolved_root = root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(root=resolved_root, config_path=toml_path, **overrides)
        finally:
            _tls.toml_path = None
