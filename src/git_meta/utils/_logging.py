"""Logging utilities for git-meta.

This module provides structlog logger factories. Library modules obtain a
logger with get_logger() and emit structured events; nothing is written
until an application calls configure_logging() (the CLI does this on start),
so importing git-meta never changes a host application's logging.
"""

import logging
import sys
from os import getenv
from pathlib import Path
from typing import Literal

import structlog

LogFormatType = Literal["json", "text"]

# Name of the stdlib logger all git-meta events are routed through
_ROOT_LOGGER_NAME: str = "git_meta"

# Silent until configure_logging() attaches a real handler
logging.getLogger(_ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


def _get_log_level() -> int:
    """Get the log level from environment variables.

    Checks GIT_META_DEBUG first (sets DEBUG if present), then
    GIT_META_LOG_LEVEL. Defaults to WARNING if neither is set.

    Returns:
        The logging level as an integer.
    """
    if getenv("GIT_META_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(getenv("GIT_META_LOG_LEVEL", "warning").upper(), logging.WARNING)


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Convert a log level string to a logging level integer.

    Args:
        level: Log level string (debug, info, warning, error).
        respect_env: If True, GIT_META_DEBUG overrides to DEBUG level.

    Returns:
        The logging level as an integer.
    """
    if respect_env and getenv("GIT_META_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.INFO)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger for a git-meta module.

    Events go through the stdlib "git_meta" logger hierarchy, so they are
    silent unless configure_logging() (or the host application) attaches a
    handler.

    Args:
        name: Module name, usually __name__.

    Returns:
        A bound logger with the module name attached.
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
    )


def configure_logging(
    *,
    level: str | None = None,
    log_format: LogFormatType = "text",
    log_file: str = "",
) -> None:
    """Attach a handler rendering git-meta events.

    The log level is determined by (in order of precedence):
    1. GIT_META_DEBUG environment variable (if set, enables DEBUG level)
    2. The `level` parameter (if provided)
    3. GIT_META_LOG_LEVEL environment variable
    4. Default: WARNING

    Args:
        level: Optional log level string (debug, info, warning, error).
        log_format: Output format, either "json" or "text".
        log_file: Path to a log file; stderr is used when empty.
    """
    effective_level = (
        _log_level_from_string(level, respect_env=True)
        if level is not None
        else _get_log_level()
    )

    if log_format == "json":
        renderer: structlog.typing.Processor = structlog.processors.JSONRenderer()
        extra: list[structlog.typing.Processor] = [structlog.processors.dict_tracebacks]
    else:
        # Text format: "timestamp [level] event key=value ..."
        renderer = structlog.dev.ConsoleRenderer(colors=False)
        extra = []

    handler: logging.Handler
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(effective_level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *extra,
                renderer,
            ],
        )
    )

    root = logging.getLogger(_ROOT_LOGGER_NAME)
    for existing in list(root.handlers):
        root.removeHandler(existing)
        existing.close()
    root.addHandler(handler)
    root.setLevel(effective_level)
    root.propagate = False
