"""FaultlineClient — the SDK instance.

Owns the configuration, the change-notification registry, the settings
manager and the event pipeline. Settings sync (pull) and event submission
(push) are independent: neither waits for the other.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from faultline.configuration import Configuration
from faultline.domain.models import EVENT_TYPE_ERROR, Event, SubmissionResponse
from faultline.plugins.builtins import ErrorPlugin
from faultline.plugins.context import ContextData, EventPluginContext
from faultline.plugins.pipeline import EventPipeline
from faultline.services.notifier import ChangeHandler, ChangeNotifier
from faultline.services.settings_manager import ResultCallback, SettingsManager

if TYPE_CHECKING:
    from faultline.config.settings import FaultlineSettings
    from faultline.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class FaultlineClient:
    """Entry point for host applications.

    Parameters:
        config: Runtime configuration and collaborators.
        plugin_manager: Optional pluggy manager whose plugins contribute
            extra event plugins to the pipeline.
    """

    def __init__(
        self,
        config: Configuration,
        *,
        plugin_manager: PluginManager | None = None,
    ) -> None:
        self.config = config
        self.notifier = ChangeNotifier()
        self.settings_manager = SettingsManager(self.notifier)
        self.pipeline = EventPipeline()
        self.pipeline.add(ErrorPlugin())
        if plugin_manager is not None:
            for plugin in plugin_manager.collect_event_plugins():
                self.pipeline.add(plugin)
                logger.debug("Added event plugin %s (priority %d)", plugin.name, plugin.priority)

    @classmethod
    def from_settings(cls, settings: FaultlineSettings) -> FaultlineClient:
        """Build a client with default adapters and discovered plugins."""
        plugin_manager = None
        if settings.plugins.discover:
            from faultline.plugins.manager import PluginManager

            plugin_manager = PluginManager()
            plugin_manager.discover_and_load()
        return cls(Configuration.from_settings(settings), plugin_manager=plugin_manager)

    # ------------------------------------------------------------------
    # Settings API
    # ------------------------------------------------------------------

    def startup(self) -> None:
        """Apply cached settings, then ask the server for anything newer."""
        self.settings_manager.apply_saved_settings(self.config)
        self.settings_manager.update_settings(self.config)

    def on_settings_changed(self, handler: ChangeHandler | None) -> None:
        self.settings_manager.on_changed(handler)

    def get_settings_version(self) -> int:
        return self.settings_manager.get_version(self.config)

    def check_version(self, version: int) -> None:
        self.settings_manager.check_version(version, self.config)

    def update_settings(
        self, version: int | None = None, *, on_complete: ResultCallback | None = None
    ) -> None:
        self.settings_manager.update_settings(self.config, version, on_complete=on_complete)

    # ------------------------------------------------------------------
    # Event API
    # ------------------------------------------------------------------

    def create_event(self, event_type: str, message: str | None = None, **data: Any) -> Event:
        return Event(type=event_type, message=message, data=data)

    def process_event(
        self, event: Event, context_data: ContextData | None = None
    ) -> EventPluginContext:
        """Run *event* through the pipeline without submitting it."""
        context = EventPluginContext(
            client=self,
            event=event,
            context_data=context_data if context_data is not None else ContextData(),
        )
        return self.pipeline.run(context)

    def submit_event(
        self, event: Event, context_data: ContextData | None = None
    ) -> EventPluginContext:
        """Enrich *event* and upload it unless a plugin cancelled it."""
        context = self.process_event(event, context_data)
        if context.cancelled:
            return context

        if self.config.submission_client is None or not self.config.is_valid:
            self.config.log.warning("Unable to submit event: client is not configured.")
            return context

        self.config.submission_client.post_events([event], self.config, self._on_submitted)
        return context

    def submit_exception(self, exception: BaseException, **data: Any) -> EventPluginContext:
        context_data = ContextData()
        context_data.set_exception(exception)
        event = self.create_event(EVENT_TYPE_ERROR, str(exception) or None, **data)
        return self.submit_event(event, context_data)

    def shutdown(self) -> None:
        if self.config.submission_client is not None:
            self.config.submission_client.close()
        close_storage = getattr(self.config.storage, "close", None)
        if close_storage is not None:
            close_storage()

    def _on_submitted(self, response: SubmissionResponse) -> None:
        if not response.success:
            self.config.log.warning(
                f"Event submission failed ({response.status_code}): {response.message}"
            )
        if response.settings_version is not None:
            self.check_version(response.settings_version)
