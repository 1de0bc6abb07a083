"""Structured logging for mimetree.

Module loggers are structlog loggers backed by stdlib loggers under the
``mimetree`` namespace, so nothing is printed until the embedding
application (or :func:`setup_logging`) enables that namespace.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from .config import MimeSettings, get_settings

LOGGER_NAME = "mimetree"


def get_logger(name: str = LOGGER_NAME) -> Any:
    return structlog.wrap_logger(
        logging.getLogger(name),
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def setup_logging(settings: MimeSettings | None = None) -> logging.Handler:
    """Route mimetree events to stdout, rendered per *settings*.

    Only the ``mimetree`` logger is touched: it gets a single handler, the
    configured level, and stops propagating.  Handlers on the root logger
    are left alone.  Returns the installed handler.
    """
    settings = settings or get_settings()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )

    if settings.log_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(settings.log_level.upper())
    logger.propagate = False
    return handler
