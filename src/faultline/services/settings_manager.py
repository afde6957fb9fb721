"""Version-gated synchronization of server-pushed settings.

Merge rule is overwrite + prune, never full replace:

- keys in the server response overwrite local keys of the same name;
- keys in the *previous* snapshot that the new response no longer carries
  were deleted upstream and are removed locally;
- everything else (local defaults never managed by the server) survives.

Concurrent ``update_settings`` calls are not serialized: the last response
to complete wins the persisted snapshot.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from faultline.domain.models import SettingsResponse, VersionedSettings
from faultline.services.notifier import ChangeHandler, ChangeNotifier
from faultline.services.result import INVALID_CONFIG, SETTINGS_UNAVAILABLE, ServiceResult

if TYPE_CHECKING:
    from faultline.configuration import Configuration

UNABLE_TO_UPDATE = "Unable to update settings"

ResultCallback = Callable[[ServiceResult], None]


class SettingsManager:
    """Keeps ``Configuration.settings`` in sync with the server.

    Parameters:
        notifier: Registry fired once per applied change. A private one is
            created when omitted.
    """

    def __init__(self, notifier: ChangeNotifier | None = None) -> None:
        self.notifier = notifier if notifier is not None else ChangeNotifier()

    def on_changed(self, handler: ChangeHandler | None) -> None:
        self.notifier.on_changed(handler)

    def apply_saved_settings(self, config: Configuration | None) -> None:
        """Merge the cached snapshot into *config* without a network round-trip."""
        if config is None or not config.is_valid:
            return

        saved = self._get_saved_settings(config)
        config.log.info(f"Applying saved settings: v{saved.version}")
        config.settings.update(saved.settings)
        self.notifier.notify(config)

    def get_version(self, config: Configuration | None) -> int:
        """Version of the persisted snapshot, ``0`` when none is usable."""
        if config is None or not config.is_valid:
            return 0
        return self._get_saved_settings(config).version

    def check_version(self, version: int, config: Configuration | None) -> None:
        """Fetch settings only when the server announces a newer *version*.

        Stale and repeated announcements are ignored, so they never cause a
        redundant fetch.
        """
        if config is None:
            return

        current_version = self.get_version(config)
        if version <= current_version:
            return

        config.log.info(f"Updating settings from v{current_version} to v{version}")
        self.update_settings(config, current_version)

    def update_settings(
        self,
        config: Configuration | None,
        version: int | None = None,
        *,
        on_complete: ResultCallback | None = None,
    ) -> None:
        """Request settings newer than *version* from the submission client.

        *version* defaults to the persisted version when absent or negative.
        The outcome is applied when the client calls back; *on_complete*
        receives the resulting :class:`ServiceResult`.
        """
        if config is None:
            return

        if not config.is_valid:
            message = f"{UNABLE_TO_UPDATE}: API key is not set."
            config.log.error(message)
            if on_complete is not None:
                on_complete(ServiceResult.failure("update_settings", INVALID_CONFIG, message))
            return

        if version is None or version < 0:
            version = self.get_version(config)

        if config.submission_client is None:
            message = f"{UNABLE_TO_UPDATE}: no submission client configured."
            config.log.error(message)
            if on_complete is not None:
                on_complete(ServiceResult.failure("update_settings", INVALID_CONFIG, message))
            return

        def _on_response(response: SettingsResponse | None) -> None:
            result = self.apply_response(config, response)
            if on_complete is not None:
                on_complete(result)

        config.log.info(f"Checking for updated settings from: v{version}.")
        config.submission_client.get_settings(config, version, _on_response)

    def apply_response(
        self, config: Configuration, response: SettingsResponse | None
    ) -> ServiceResult:
        """Merge, prune and persist a settings response; notify on success."""
        if (
            response is None
            or not response.success
            or response.settings is None
            or response.settings_version < 0
        ):
            message = (response.message or "no settings in response") if response else "no response"
            config.log.warning(f"{UNABLE_TO_UPDATE}: {message}")
            return ServiceResult.failure(
                "update_settings", SETTINGS_UNAVAILABLE, f"{UNABLE_TO_UPDATE}: {message}"
            )

        previous = self._get_saved_settings(config)

        config.settings.update(response.settings)
        for key in previous.settings:
            if key not in response.settings:
                config.settings.pop(key, None)

        snapshot = VersionedSettings(
            version=response.settings_version, settings=dict(response.settings)
        )
        config.storage.settings.save(snapshot)

        config.log.info(f"Updated settings: v{snapshot.version}")
        self.notifier.notify(config)
        return ServiceResult(
            ok=True,
            op="update_settings",
            data={"version": snapshot.version, "settings": dict(config.settings)},
        )

    @staticmethod
    def _get_saved_settings(config: Configuration) -> VersionedSettings:
        items = config.storage.settings.get()
        if items:
            value = items[0].value
            if value is not None and value.version:
                return value
        return VersionedSettings.empty()
