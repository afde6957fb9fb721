"""Pluggy hook specifications for faultline extensions.

Third-party packages contribute event plugins through the
``faultline.plugins`` entry-point group.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from faultline.plugins.base import EventPlugin

hookspec = pluggy.HookspecMarker("faultline")
hookimpl = pluggy.HookimplMarker("faultline")


class FaultlineHookSpec:
    """Hook specifications for the faultline plugin system."""

    @hookspec
    def register_event_plugins(self) -> list[EventPlugin] | None:
        """Return event plugins to add to the client's pipeline."""
