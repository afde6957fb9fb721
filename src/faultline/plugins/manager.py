"""Plugin discovery and loading.

Discovery: entry points (pip-installed) via pluggy setuptools entrypoints
for the ``faultline.plugins`` group. Each registered pluggy plugin may
contribute event plugins through the ``register_event_plugins`` hook.
"""

from __future__ import annotations

import inspect
import logging

import pluggy

from faultline.plugins.base import EventPlugin
from faultline.plugins.hookspecs import FaultlineHookSpec

PROJECT_NAME = "faultline"
ENTRY_POINT_GROUP = "faultline.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and event plugin collection."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(FaultlineHookSpec)
        self._loaded: bool = False

    def discover_and_load(self) -> list[str]:
        """Load plugins from the ``faultline.plugins`` entry points.

        Returns a list of registered plugin names.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._normalize_plugin_instances()
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def collect_event_plugins(self) -> list[EventPlugin]:
        """Ask each registered plugin for its event plugins.

        A plugin whose hook raises or returns something other than a list
        of event plugins is skipped with a warning.
        """
        collected: list[EventPlugin] = []
        for plugin in self._pm.get_plugins():
            plugin_name = self._pm.get_name(plugin) or plugin.__class__.__name__
            collected.extend(self._collect_from(plugin, plugin_name))
        return collected

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _collect_from(plugin: object, plugin_name: str) -> list[EventPlugin]:
        hook = getattr(plugin, "register_event_plugins", None)
        if hook is None:
            return []

        try:
            provided = hook()
        except Exception:
            logger.warning(
                "Failed to collect event plugins from plugin %s",
                plugin_name,
                exc_info=True,
            )
            return []

        if provided is None:
            return []
        if not isinstance(provided, (list, tuple)):
            logger.warning("Plugin %s returned non-list event plugins", plugin_name)
            return []

        valid: list[EventPlugin] = []
        for item in provided:
            if isinstance(item, EventPlugin):
                valid.append(item)
            else:
                logger.warning("Skipping invalid event plugin %r from plugin %s", item, plugin_name)
        return valid

    def _normalize_plugin_instances(self) -> None:
        """Replace registered plugin classes with instantiated objects.

        Entry-point loading may register a plugin class directly. Hook dispatch
        against class objects leaves ``self`` unbound and fails at runtime.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue

            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)

            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s",
                    plugin_name,
                    exc_info=True,
                )
                continue

            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)
