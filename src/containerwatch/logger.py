"""Structured logging singleton.

The initial level comes straight from ``CONTAINERWATCH_LOGGING__LEVEL`` so
the logger works before Settings is loaded; ``set_level`` applies the
configured level (or ``--log-level``) once it is known.
"""

from __future__ import annotations

import logging
import os
import sys

import structlog

LEVEL_ENV = "CONTAINERWATCH_LOGGING__LEVEL"


def level_from_name(level_name: str) -> int:
    """Map a level name to its number; unknown names fall back to INFO."""
    return logging.getLevelNamesMapping().get(level_name.upper(), logging.INFO)


def _setup_logging() -> structlog.stdlib.BoundLogger:
    level = level_from_name(os.environ.get(LEVEL_ENV, "INFO"))

    # stdlib root logger carries the level; filter_by_level reads it per call
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger()


logger = _setup_logging()


def set_level(level_name: str) -> None:
    """Change the root log level after startup."""
    logging.getLogger().setLevel(level_from_name(level_name))
