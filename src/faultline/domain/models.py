"""Pydantic models for settings snapshots, server responses, and events.

``VersionedSettings`` with ``version == 0`` is the "nothing saved yet"
sentinel and is never written back as meaningful state.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

EVENT_TYPE_ERROR = "error"
EVENT_TYPE_LOG = "log"

ERROR_DATA_KEY = "@error"


class VersionedSettings(BaseModel):
    """One snapshot of server-managed settings."""

    model_config = {"frozen": True}

    version: int = Field(default=0, ge=0)
    settings: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def empty(cls) -> VersionedSettings:
        return cls(version=0, settings={})


class SettingsResponse(BaseModel):
    """Result of a settings fetch from the submission client."""

    model_config = {"frozen": True}

    success: bool
    message: str | None = None
    settings: dict[str, str] | None = None
    settings_version: int = -1


class SubmissionResponse(BaseModel):
    """Result of an event upload.

    Attributes:
        status_code: HTTP status, or ``-1`` when no response was received.
        settings_version: Server-side settings version announced with the
            response, if any.
    """

    model_config = {"frozen": True}

    status_code: int
    message: str | None = None
    settings_version: int | None = None

    @property
    def success(self) -> bool:
        return 200 <= self.status_code < 300


class Event(BaseModel):
    """A telemetry event. Mutable so pipeline plugins can enrich it."""

    type: str = EVENT_TYPE_LOG
    source: str | None = None
    message: str | None = None
    reference_id: str | None = None
    date: datetime = Field(default_factory=lambda: datetime.now(UTC))
    tags: list[str] = Field(default_factory=list)
    data: dict[str, Any] = Field(default_factory=dict)
