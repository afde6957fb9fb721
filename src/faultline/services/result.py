"""ServiceResult and ServiceError — typed outcome of recoverable operations.

Settings sync reports invalid credentials and unusable server responses
through these instead of raising. Raised exceptions are reserved for
misconfiguration (see :mod:`faultline.domain.errors`).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

INVALID_CONFIG = "INVALID_CONFIG"
SETTINGS_UNAVAILABLE = "SETTINGS_UNAVAILABLE"


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of a settings operation.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"update_settings"``).
        data: Operation-specific payload on success.
        error: Structured error if ``ok`` is False.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    error: ServiceError | None = None

    @classmethod
    def failure(cls, op: str, code: str, message: str, **detail: Any) -> ServiceResult:
        return cls(ok=False, op=op, error=ServiceError(code=code, message=message, detail=detail))
