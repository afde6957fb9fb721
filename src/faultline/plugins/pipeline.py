"""Priority-ordered event pipeline.

Stages run strictly one after another in ascending priority; equal
priorities keep registration order. A stage stops the pipeline by
returning :attr:`PluginAction.HALT` (or setting ``context.cancelled``).
A stage that raises is logged and skipped; the next stage still runs.
"""

from __future__ import annotations

from operator import attrgetter
from typing import TYPE_CHECKING

from faultline.plugins.base import PluginAction

if TYPE_CHECKING:
    from faultline.plugins.base import EventPlugin
    from faultline.plugins.context import EventPluginContext


class EventPipeline:
    """Ordered collection of event plugins."""

    def __init__(self) -> None:
        self._plugins: list[EventPlugin] = []

    @property
    def plugins(self) -> tuple[EventPlugin, ...]:
        return tuple(self._plugins)

    def __len__(self) -> int:
        return len(self._plugins)

    def __contains__(self, name: object) -> bool:
        return any(p.name == name for p in self._plugins)

    def add(self, plugin: EventPlugin) -> None:
        """Register *plugin*, replacing any plugin with the same name."""
        self.remove(plugin.name)
        self._plugins.append(plugin)
        self._plugins.sort(key=attrgetter("priority"))

    def remove(self, name: str) -> None:
        self._plugins = [p for p in self._plugins if p.name != name]

    def run(self, context: EventPluginContext) -> EventPluginContext:
        """Run *context* through every stage until one halts."""
        for plugin in list(self._plugins):
            try:
                if plugin.run(context) is PluginAction.HALT:
                    context.cancelled = True
            except Exception as exc:
                context.log.error(f"Error running plugin {plugin.name!r}: {exc!r}")

            if context.cancelled:
                context.log.info(f"Event cancelled by plugin {plugin.name!r}")
                break
        return context
