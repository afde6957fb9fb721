"""Configuration — the runtime context shared by the settings and plugin layers.

Holds the effective settings dict (mutated only by the SettingsManager) and
references to the collaborators: log sink, submission client, storage and
error parser. Collaborators are shared, not owned; the SDK instance that
builds the configuration closes them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from faultline.config.models import DEFAULT_SERVER_URL
from faultline.infrastructure.error_parser import TracebackErrorParser
from faultline.infrastructure.storage import InMemoryStorage, SqliteStorage

if TYPE_CHECKING:
    from faultline.config.settings import FaultlineSettings
    from faultline.infrastructure.error_parser import ErrorParser
    from faultline.infrastructure.storage import Storage
    from faultline.infrastructure.submission import SubmissionClient


class Configuration:
    """Mutable SDK configuration.

    Attributes:
        settings: Current effective key/value settings. Local defaults
            first, server-managed keys merged on top.
        log: Log sink with ``info``/``warning``/``error`` methods.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        server_url: str = DEFAULT_SERVER_URL,
        settings: dict[str, str] | None = None,
        log: Any = None,
        submission_client: SubmissionClient | None = None,
        storage: Storage | None = None,
        error_parser: ErrorParser | None = None,
    ) -> None:
        self.api_key = api_key
        self.server_url = server_url
        self.settings: dict[str, str] = dict(settings or {})
        self.log = log if log is not None else structlog.get_logger("faultline")
        self.submission_client = submission_client
        self.storage: Storage = storage if storage is not None else InMemoryStorage()
        self.error_parser = error_parser

    @property
    def is_valid(self) -> bool:
        """Whether a credential is configured."""
        return bool(self.api_key)

    def __repr__(self) -> str:
        return (
            f"Configuration(server_url={self.server_url!r}, is_valid={self.is_valid}, "
            f"settings={len(self.settings)} keys)"
        )

    @classmethod
    def from_settings(cls, settings: FaultlineSettings) -> Configuration:
        """Build a configuration with the default adapters for *settings*."""
        from faultline.infrastructure.submission import HttpSubmissionClient

        storage: Storage
        if settings.storage.backend == "memory":
            storage = InMemoryStorage(settings.storage.max_items)
        else:
            storage = SqliteStorage(settings.storage_dir, settings.storage.max_items)

        return cls(
            api_key=settings.api_key,
            server_url=settings.server.url,
            settings=settings.defaults,
            submission_client=HttpSubmissionClient(
                timeout=settings.server.timeout_seconds, sync=settings.sync
            ),
            storage=storage,
            error_parser=TracebackErrorParser(),
        )
