"""structlog configuration for faultline.

Two output modes:
- Human (default): colored console output
- JSON (--log-json): structured JSON lines

API keys never reach the log output: any event field whose name looks
like a credential is masked before rendering.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any, TextIO

import structlog

_SECRET_FIELDS = frozenset({"api_key", "apikey", "authorization", "token"})
_MASK = "********"


def redact_secrets(
    _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Mask credential-looking fields, keeping the last four characters."""
    for key in list(event_dict):
        if key.lower() not in _SECRET_FIELDS:
            continue
        value = event_dict[key]
        if isinstance(value, str) and len(value) > 8:
            event_dict[key] = f"{_MASK}{value[-4:]}"
        elif value is not None:
            event_dict[key] = _MASK
    return event_dict


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog processors and output routing.

    Args:
        verbose: Enable DEBUG-level output for ``faultline.*``. When False,
            only WARNING+.
        log_json: Use JSON renderer instead of console renderer.
        stream: Destination stream, ``sys.stderr`` by default.
    """
    out = stream if stream is not None else sys.stderr
    level = logging.DEBUG if verbose else logging.WARNING

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=out.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(out)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("faultline").setLevel(level)
    # SQLAlchemy echoes every statement at INFO on its own loggers.
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
