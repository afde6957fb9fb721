"""Tests for SettingsManager — version gating, merge/prune, persistence."""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from faultline.configuration import Configuration
from faultline.domain.models import SettingsResponse, VersionedSettings
from faultline.services.notifier import ChangeNotifier
from faultline.services.result import INVALID_CONFIG, SETTINGS_UNAVAILABLE, ServiceResult
from faultline.services.settings_manager import SettingsManager
from tests.conftest import FakeSubmissionClient, SpyStorage


@pytest.fixture
def manager() -> SettingsManager:
    return SettingsManager(ChangeNotifier())


def _save(config: Configuration, version: int, settings: dict[str, str]) -> None:
    config.storage.settings.save(VersionedSettings(version=version, settings=settings))


class TestGetVersion:
    def test_zero_without_snapshot(self, manager: SettingsManager, config: Configuration) -> None:
        assert manager.get_version(config) == 0

    def test_returns_persisted_version(
        self, manager: SettingsManager, config: Configuration
    ) -> None:
        _save(config, 4, {"a": "1"})
        assert manager.get_version(config) == 4

    def test_zero_for_invalid_config(
        self, manager: SettingsManager, invalid_config: Configuration
    ) -> None:
        _save(invalid_config, 4, {"a": "1"})
        assert manager.get_version(invalid_config) == 0

    def test_zero_for_missing_config(self, manager: SettingsManager) -> None:
        assert manager.get_version(None) == 0

    def test_pure_read(
        self, manager: SettingsManager, config: Configuration, storage: SpyStorage
    ) -> None:
        _save(config, 2, {"a": "1"})
        before = dict(config.settings)
        manager.get_version(config)
        assert config.settings == before
        assert storage.writes == 1


class TestApplySavedSettings:
    def test_merges_snapshot_over_local(
        self, manager: SettingsManager, config: Configuration
    ) -> None:
        config.settings.update({"a": "local", "keep": "x"})
        _save(config, 3, {"a": "server", "b": "2"})

        manager.apply_saved_settings(config)

        assert config.settings == {"a": "server", "keep": "x", "b": "2"}

    def test_notifies_once(self, manager: SettingsManager, config: Configuration) -> None:
        calls: list[Configuration] = []
        manager.on_changed(calls.append)
        _save(config, 1, {"a": "1"})

        manager.apply_saved_settings(config)

        assert calls == [config]

    def test_logs_applied_version(self, manager: SettingsManager, config: Configuration) -> None:
        _save(config, 7, {"a": "1"})
        with capture_logs() as logs:
            manager.apply_saved_settings(config)
        assert {"event": "Applying saved settings: v7", "log_level": "info"} in logs

    def test_empty_storage_applies_sentinel(
        self, manager: SettingsManager, config: Configuration
    ) -> None:
        config.settings["a"] = "1"
        calls: list[Configuration] = []
        manager.on_changed(calls.append)

        manager.apply_saved_settings(config)

        assert config.settings == {"a": "1"}
        assert len(calls) == 1

    def test_invalid_config_is_noop(
        self,
        manager: SettingsManager,
        invalid_config: Configuration,
        storage: SpyStorage,
    ) -> None:
        calls: list[Configuration] = []
        manager.on_changed(calls.append)

        manager.apply_saved_settings(invalid_config)

        assert storage.reads == 0
        assert invalid_config.settings == {"local": "1"}
        assert calls == []

    def test_missing_config_is_noop(self, manager: SettingsManager) -> None:
        manager.apply_saved_settings(None)


class TestCheckVersion:
    def test_equal_version_does_not_fetch(
        self,
        manager: SettingsManager,
        config: Configuration,
        submission_client: FakeSubmissionClient,
    ) -> None:
        _save(config, 3, {"a": "1"})
        manager.check_version(3, config)
        manager.check_version(3, config)
        assert submission_client.settings_requests == []

    def test_stale_version_does_not_fetch(
        self,
        manager: SettingsManager,
        config: Configuration,
        submission_client: FakeSubmissionClient,
    ) -> None:
        _save(config, 3, {"a": "1"})
        manager.check_version(1, config)
        assert submission_client.settings_requests == []

    def test_newer_version_fetches_from_current(
        self,
        manager: SettingsManager,
        config: Configuration,
        submission_client: FakeSubmissionClient,
    ) -> None:
        _save(config, 3, {"a": "1"})
        submission_client.queue_settings(5, {"a": "2"})

        manager.check_version(5, config)

        assert submission_client.settings_requests == [3]
        assert manager.get_version(config) == 5

    def test_repeated_announcement_fetches_once(
        self,
        manager: SettingsManager,
        config: Configuration,
        submission_client: FakeSubmissionClient,
    ) -> None:
        submission_client.queue_settings(2, {"a": "1"})
        manager.check_version(2, config)
        manager.check_version(2, config)
        assert len(submission_client.settings_requests) == 1

    def test_missing_config_is_noop(self, manager: SettingsManager) -> None:
        manager.check_version(5, None)


class TestUpdateSettings:
    def test_merge_overwrites_and_prunes(
        self,
        manager: SettingsManager,
        config: Configuration,
        submission_client: FakeSubmissionClient,
    ) -> None:
        config.settings.update({"a": "1", "b": "2", "local_only": "x"})
        _save(config, 1, {"b": "2"})
        submission_client.queue_settings(2, {"a": "9"})

        manager.update_settings(config)

        assert config.settings == {"a": "9", "local_only": "x"}

    def test_prune_uses_membership_not_truthiness(
        self,
        manager: SettingsManager,
        config: Configuration,
        submission_client: FakeSubmissionClient,
    ) -> None:
        _save(config, 1, {"flag": "on"})
        config.settings["flag"] = "on"
        submission_client.queue_settings(2, {"flag": ""})

        manager.update_settings(config)

        assert config.settings == {"flag": ""}

    def test_persists_new_snapshot(
        self,
        manager: SettingsManager,
        config: Configuration,
        submission_client: FakeSubmissionClient,
    ) -> None:
        submission_client.queue_settings(6, {"a": "1"})

        manager.update_settings(config)

        latest = config.storage.settings.get()[0].value
        assert latest == VersionedSettings(version=6, settings={"a": "1"})
        assert manager.get_version(config) == 6

    def test_version_increases_across_updates(
        self,
        manager: SettingsManager,
        config: Configuration,
        submission_client: FakeSubmissionClient,
    ) -> None:
        submission_client.queue_settings(1, {"a": "1"})
        submission_client.queue_settings(2, {"a": "2"})

        manager.update_settings(config)
        first = manager.get_version(config)
        manager.update_settings(config)
        second = manager.get_version(config)

        assert (first, second) == (1, 2)
        assert submission_client.settings_requests == [0, 1]

    def test_notifies_exactly_once_on_success(
        self,
        manager: SettingsManager,
        config: Configuration,
        submission_client: FakeSubmissionClient,
    ) -> None:
        calls: list[Configuration] = []
        manager.on_changed(calls.append)
        submission_client.queue_settings(1, {"a": "1"})

        manager.update_settings(config)

        assert calls == [config]

    @pytest.mark.parametrize("version", [None, -1])
    def test_defaults_to_persisted_version(
        self,
        manager: SettingsManager,
        config: Configuration,
        submission_client: FakeSubmissionClient,
        version: int | None,
    ) -> None:
        _save(config, 4, {"a": "1"})
        manager.update_settings(config, version)
        assert submission_client.settings_requests == [4]

    def test_explicit_version_is_sent(
        self,
        manager: SettingsManager,
        config: Configuration,
        submission_client: FakeSubmissionClient,
    ) -> None:
        _save(config, 4, {"a": "1"})
        manager.update_settings(config, 2)
        assert submission_client.settings_requests == [2]

    def test_reports_success_result(
        self,
        manager: SettingsManager,
        config: Configuration,
        submission_client: FakeSubmissionClient,
    ) -> None:
        results: list[ServiceResult] = []
        submission_client.queue_settings(3, {"a": "1"})

        manager.update_settings(config, on_complete=results.append)

        assert len(results) == 1
        assert results[0].ok is True
        assert results[0].data["version"] == 3
        assert results[0].data["settings"] == {"a": "1"}


class TestUpdateSettingsFailures:
    def test_unsuccessful_response_leaves_state(
        self,
        manager: SettingsManager,
        config: Configuration,
        submission_client: FakeSubmissionClient,
        storage: SpyStorage,
    ) -> None:
        config.settings["a"] = "1"
        _save(config, 2, {"a": "1"})
        calls: list[Configuration] = []
        manager.on_changed(calls.append)
        submission_client.queue_failure("Service unavailable")

        with capture_logs() as logs:
            manager.update_settings(config)

        assert config.settings == {"a": "1"}
        assert manager.get_version(config) == 2
        assert storage.writes == 1
        assert calls == []
        assert {
            "event": "Unable to update settings: Service unavailable",
            "log_level": "warning",
        } in logs

    def test_response_without_settings_is_failure(
        self,
        manager: SettingsManager,
        config: Configuration,
        submission_client: FakeSubmissionClient,
    ) -> None:
        results: list[ServiceResult] = []
        submission_client.settings_responses.append(
            SettingsResponse(success=True, settings=None, settings_version=3)
        )

        manager.update_settings(config, on_complete=results.append)

        assert results[0].ok is False
        assert results[0].error is not None
        assert results[0].error.code == SETTINGS_UNAVAILABLE
        assert manager.get_version(config) == 0

    def test_missing_response_is_failure(
        self, manager: SettingsManager, config: Configuration
    ) -> None:
        with capture_logs() as logs:
            result = manager.apply_response(config, None)
        assert result.ok is False
        assert logs[0]["log_level"] == "warning"

    def test_invalid_config_touches_nothing(
        self,
        manager: SettingsManager,
        invalid_config: Configuration,
        submission_client: FakeSubmissionClient,
        storage: SpyStorage,
    ) -> None:
        results: list[ServiceResult] = []

        with capture_logs() as logs:
            manager.update_settings(invalid_config, on_complete=results.append)

        assert submission_client.settings_requests == []
        assert storage.reads == 0
        assert storage.writes == 0
        assert invalid_config.settings == {"local": "1"}
        assert logs[0]["log_level"] == "error"
        assert "API key is not set" in logs[0]["event"]
        assert results[0].error is not None
        assert results[0].error.code == INVALID_CONFIG

    def test_missing_config_is_noop(self, manager: SettingsManager) -> None:
        manager.update_settings(None)

    def test_snapshot_with_version_zero_is_ignored(
        self,
        manager: SettingsManager,
        config: Configuration,
        submission_client: FakeSubmissionClient,
    ) -> None:
        _save(config, 0, {"stale": "1"})
        config.settings["stale"] = "1"
        submission_client.queue_settings(1, {"a": "1"})

        manager.update_settings(config)

        # A version-0 snapshot is the sentinel, so nothing is pruned from it.
        assert config.settings == {"stale": "1", "a": "1"}
