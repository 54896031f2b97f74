# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structured logging configuration using structlog.

structlog renders onto standard library loggers. Domain services log
through ``logging.getLogger(__name__)`` directly, so records from both
paths go to the same stdout handler at the same level. Production output
is one JSON object per line; development output is colored console text.

Example:
    >>> from academics.utils.logging import setup_logging, get_logger
    >>> from academics.core.config import get_settings
    >>> setup_logging(get_settings())
    >>> logger = get_logger(__name__)
    >>> logger.info("Enrollment submitted", student_id="123", sections=4)
"""

import logging
import sys
from typing import TYPE_CHECKING

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from academics.core.config.settings import Settings

# Driver and event loop loggers only surface warnings
_QUIET_LOGGERS = ("sqlalchemy", "asyncio", "asyncpg", "aiosqlite")


def _processors(pretty: bool) -> list[Processor]:
    chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if pretty:
        chain.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        chain += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return chain


def setup_logging(settings: "Settings") -> None:
    """Configure structlog and the root stdlib logger.

    Args:
        settings: Application settings; ``log_level`` sets the threshold and
            ``is_development`` or ``debug`` selects console rendering.
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=_processors(settings.is_development or settings.debug),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stdout,
        level=level,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("academics").setLevel(level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: object) -> None:
    """Attach key-value pairs to every later log call in this context.

    Example:
        >>> bind_context(actor_id="u-1", role="registrar")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop all bound context variables."""
    structlog.contextvars.clear_contextvars()
