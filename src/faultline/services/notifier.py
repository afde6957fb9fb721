"""Fan-out of settings-change notifications.

One registry per SDK instance. Handlers are append-only and run in
registration order on the caller's thread.

INVARIANT: a failing handler is logged and never stops the others.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from faultline.configuration import Configuration

ChangeHandler = Callable[["Configuration"], None]


class ChangeNotifier:
    """Registry of callbacks fired whenever settings change."""

    def __init__(self) -> None:
        self._handlers: list[ChangeHandler] = []

    @property
    def handlers(self) -> tuple[ChangeHandler, ...]:
        return tuple(self._handlers)

    def on_changed(self, handler: ChangeHandler | None) -> None:
        """Register *handler*. ``None`` is ignored."""
        if handler is not None:
            self._handlers.append(handler)

    def notify(self, config: Configuration) -> None:
        """Invoke every handler with *config*."""
        for handler in list(self._handlers):
            try:
                handler(config)
            except Exception as exc:
                config.log.error(f"Error calling on_changed handler: {exc!r}")
