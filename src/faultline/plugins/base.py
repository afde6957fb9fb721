"""Event plugin contract."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from faultline.plugins.context import EventPluginContext


class PluginAction(Enum):
    """What the pipeline does after a plugin returns."""

    CONTINUE = "continue"
    HALT = "halt"


@runtime_checkable
class EventPlugin(Protocol):
    """One pipeline stage. Lower ``priority`` runs first."""

    name: str
    priority: int

    def run(self, context: EventPluginContext) -> PluginAction:
        """Enrich ``context.event``; return HALT to drop the event."""
