"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, faultline.toml only contains
overrides. A working setup needs only ``api_key``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

DEFAULT_SERVER_URL = "https://collector.faultline.dev"


class ServerConfig(BaseModel):
    """[server] section."""

    model_config = {"frozen": True}

    url: str = DEFAULT_SERVER_URL
    timeout_seconds: float = 10.0


class StorageConfig(BaseModel):
    """[storage] section.

    ``path`` is the directory holding ``faultline.db``; relative paths are
    resolved against the config file location.
    """

    model_config = {"frozen": True}

    backend: Literal["sqlite", "memory"] = "sqlite"
    path: Path = Path(".faultline")
    max_items: int = Field(default=1, ge=1)


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    discover: bool = True
