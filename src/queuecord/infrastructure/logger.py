"""structlog setup shared by the service and the CLI.

Everything goes to stderr so stdout stays clean for command output
(``queuecord list`` and friends). LOG_LEVEL picks the threshold.
"""

from __future__ import annotations

import logging
import os
import sys

import structlog


def _log_uncaught(exc_type, exc_value, exc_traceback):  # type: ignore[no-untyped-def]
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return
    logger.critical("Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback))


def setup_logging(level_name: str | None = None) -> structlog.stdlib.BoundLogger:
    level = logging.getLevelName((level_name or os.environ.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # Library loggers (httpx logs each request at INFO).
    logging.basicConfig(level=level, stream=sys.stderr, format="%(message)s")
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))

    sys.excepthook = _log_uncaught
    return structlog.get_logger("queuecord")


logger: structlog.stdlib.BoundLogger = setup_logging()
