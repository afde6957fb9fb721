"""Shared pytest fixtures and test doubles for faultline tests."""

from __future__ import annotations

import logging
from collections.abc import Generator, Sequence
from typing import Any

import pytest
import structlog
from click.testing import CliRunner

from faultline.client import FaultlineClient
from faultline.configuration import Configuration
from faultline.domain.models import Event, SettingsResponse, SubmissionResponse, VersionedSettings
from faultline.infrastructure.error_parser import TracebackErrorParser
from faultline.infrastructure.storage import InMemoryStorage

TEST_API_KEY = "flk_test_0123456789abcdef"


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FakeSubmissionClient:
    """Submission client that answers synchronously from queued responses."""

    def __init__(self) -> None:
        self.settings_responses: list[SettingsResponse | None] = []
        self.settings_requests: list[int] = []
        self.posted: list[list[Event]] = []
        self.submission_response = SubmissionResponse(status_code=202)
        self.closed = False

    def queue_settings(self, version: int, settings: dict[str, str]) -> None:
        self.settings_responses.append(
            SettingsResponse(success=True, settings=settings, settings_version=version)
        )

    def queue_failure(self, message: str = "Service unavailable") -> None:
        self.settings_responses.append(SettingsResponse(success=False, message=message))

    def get_settings(self, config: Configuration, version: int, callback: Any) -> None:
        self.settings_requests.append(version)
        if self.settings_responses:
            response = self.settings_responses.pop(0)
        else:
            response = SettingsResponse(success=False, message="no response queued")
        callback(response)

    def post_events(self, events: Sequence[Event], config: Configuration, callback: Any) -> None:
        self.posted.append(list(events))
        callback(self.submission_response)

    def close(self) -> None:
        self.closed = True


class SpyStorage(InMemoryStorage):
    """In-memory storage that counts reads and writes."""

    def __init__(self) -> None:
        super().__init__()
        self.reads = 0
        self.writes = 0
        inner = self.settings
        outer = self

        class _Spy:
            def get(self) -> Any:
                outer.reads += 1
                return inner.get()

            def save(self, value: VersionedSettings) -> None:
                outer.writes += 1
                inner.save(value)

        self.settings = _Spy()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Undo configure_logging() side effects after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    faultline_logger = logging.getLogger("faultline")
    faultline_level = faultline_logger.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    faultline_logger.setLevel(faultline_level)
    structlog.reset_defaults()


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def submission_client() -> FakeSubmissionClient:
    return FakeSubmissionClient()


@pytest.fixture
def storage() -> SpyStorage:
    return SpyStorage()


@pytest.fixture
def config(submission_client: FakeSubmissionClient, storage: SpyStorage) -> Configuration:
    """Valid configuration wired to the fake client and spy storage."""
    return Configuration(
        api_key=TEST_API_KEY,
        server_url="https://collector.test",
        submission_client=submission_client,
        storage=storage,
        error_parser=TracebackErrorParser(),
    )


@pytest.fixture
def invalid_config(submission_client: FakeSubmissionClient, storage: SpyStorage) -> Configuration:
    """Configuration without an API key."""
    return Configuration(
        api_key=None,
        settings={"local": "1"},
        submission_client=submission_client,
        storage=storage,
        error_parser=TracebackErrorParser(),
    )


@pytest.fixture
def client(config: Configuration) -> FaultlineClient:
    return FaultlineClient(config)


def raise_and_capture(exc: BaseException) -> BaseException:
    """Raise *exc* so it carries a traceback, then return it."""
    try:
        raise exc
    except BaseException as caught:
        return caught
