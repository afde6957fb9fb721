"""Per-event state handed to every pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from faultline.client import FaultlineClient
    from faultline.domain.models import Event

_EXCEPTION_KEY = "@@_exception"


class ContextData(dict[str, Any]):
    """Ambient data that travels with an event but is never uploaded."""

    def set_exception(self, exception: BaseException) -> None:
        self[_EXCEPTION_KEY] = exception

    def get_exception(self) -> BaseException | None:
        return self.get(_EXCEPTION_KEY)


@dataclass
class EventPluginContext:
    """An event on its way through the pipeline.

    Attributes:
        client: Owning SDK instance, used for capability lookups such as
            ``client.config.error_parser``.
        cancelled: Set when a stage halts the pipeline; the event is not
            submitted.
    """

    client: FaultlineClient
    event: Event
    context_data: ContextData = field(default_factory=ContextData)
    cancelled: bool = False

    @property
    def log(self) -> Any:
        return self.client.config.log
