"""Exception parsing into the structured ``@error`` payload."""

from __future__ import annotations

import traceback
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from faultline.plugins.context import EventPluginContext

# Guards against cycles between __cause__ and __context__ chains.
MAX_INNER_DEPTH = 10


@runtime_checkable
class ErrorParser(Protocol):
    """Turns a captured exception into structured error data."""

    def parse(
        self, context: EventPluginContext, exception: BaseException
    ) -> dict[str, Any] | None:
        """Return structured error data, or None if nothing could be parsed."""


class TracebackErrorParser:
    """Error parser built on the standard ``traceback`` module."""

    def parse(
        self, context: EventPluginContext, exception: BaseException
    ) -> dict[str, Any] | None:
        return self._parse(exception, depth=0)

    def _parse(self, exception: BaseException, *, depth: int) -> dict[str, Any]:
        exc_type = type(exception)
        result: dict[str, Any] = {
            "type": f"{exc_type.__module__}.{exc_type.__qualname__}",
            "message": str(exception),
            "stack_trace": [
                {
                    "name": frame.name,
                    "file_name": frame.filename,
                    "line_number": frame.lineno,
                    "source": frame.line,
                }
                for frame in traceback.extract_tb(exception.__traceback__)
            ],
        }
        inner = exception.__cause__ or (
            None if exception.__suppress_context__ else exception.__context__
        )
        if inner is not None and depth < MAX_INNER_DEPTH:
            result["inner"] = self._parse(inner, depth=depth + 1)
        return result
