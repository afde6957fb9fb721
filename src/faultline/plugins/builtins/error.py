"""Attach structured error data to events that carry a captured exception."""

from __future__ import annotations

from typing import TYPE_CHECKING

from faultline.domain.errors import MissingErrorParserError
from faultline.domain.models import ERROR_DATA_KEY, EVENT_TYPE_ERROR
from faultline.plugins.base import PluginAction

if TYPE_CHECKING:
    from faultline.plugins.context import EventPluginContext


class ErrorPlugin:
    """Marks exception events as errors and parses the exception.

    Existing ``@error`` data is left alone. A missing error parser is a
    wiring mistake, so it raises instead of skipping; the pipeline logs it.
    """

    name = "ErrorPlugin"
    priority = 30

    def run(self, context: EventPluginContext) -> PluginAction:
        exception = context.context_data.get_exception()
        if exception is None:
            return PluginAction.CONTINUE

        context.event.type = EVENT_TYPE_ERROR

        if not context.event.data.get(ERROR_DATA_KEY):
            parser = context.client.config.error_parser
            if parser is None:
                raise MissingErrorParserError("No error parser was defined.")

            result = parser.parse(context, exception)
            if result:
                context.event.data[ERROR_DATA_KEY] = result

        return PluginAction.CONTINUE
