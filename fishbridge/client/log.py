"""Loguru sink setup for the bridge.

Everything is written to stderr, because ``fishbridge run`` reserves stdout
and ``classify``/``roots`` print their results there.  pygls and asyncio log
through the stdlib ``logging`` module; their records are re-emitted through
loguru so a single sink and format cover the whole process.
"""

from __future__ import annotations

import logging
import sys

from loguru import logger

_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> <level>{level: <7}</level> "
    "<cyan>{name}:{line}</cyan> {message}"
)

# Level names stdlib and loguru agree on; anything else is passed by number.
_SHARED_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

# pygls logs each JSON-RPC message at DEBUG and lifecycle notes at INFO.
_TRACE_LEVELS: dict[str, int] = {
    "off": logging.WARNING,
    "messages": logging.INFO,
    "verbose": logging.DEBUG,
}


class _LoguruForwarder(logging.Handler):
    """Re-emit stdlib ``LogRecord``s through loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        level: str | int = record.levelname if record.levelname in _SHARED_LEVELS else record.levelno

        # depth must point past every frame inside the logging package.
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO", trace: str = "off") -> None:
    """Route all process logging to one stderr sink at *level*.

    *trace* picks how much pygls wire traffic gets through: ``off``,
    ``messages`` or ``verbose``.  Unknown values behave like ``off``.
    """
    level = level.upper()

    logger.remove()
    logger.add(sys.stderr, level=level, format=_FORMAT)
    logging.basicConfig(handlers=[_LoguruForwarder()], level=0, force=True)

    logging.getLogger("pygls").setLevel(_TRACE_LEVELS.get(trace, logging.WARNING))
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logger.debug("Logging: level={} trace={}", level, trace)
