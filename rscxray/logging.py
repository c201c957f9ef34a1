"""Logging setup shared by the CLI, the HTTP service and library callers.

Analysis results are written to stdout as JSON, so console logging always
goes to stderr.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOGGER_NAME = "rscxray"
_CONSOLE_FORMAT = "[rscxray] %(levelname)s %(component)s%(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class _ComponentFilter(logging.Filter):
    """Expose the sub-logger name (``rules``, ``detector``...) as ``%(component)s``."""

    def filter(self, record: logging.LogRecord) -> bool:
        prefix = f"{_LOGGER_NAME}."
        component = record.name[len(prefix) :] if record.name.startswith(prefix) else ""
        record.component = f"{component}: " if component else ""
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the rscxray hierarchy, e.g. ``rscxray.orchestrator``."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def resolve_level(*, verbose: bool = False, quiet: bool = False) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_logging(
    *, verbose: bool = False, quiet: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Attach a stderr handler, and optionally a file handler, to the rscxray logger."""
    level = resolve_level(verbose=verbose, quiet=quiet)
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Repeated configuration (tests, service reloads) must not stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.addFilter(_ComponentFilter())
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        # The file sink keeps debug detail regardless of console verbosity.
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)

    return logger


__all__ = ["configure_logging", "get_logger", "resolve_level"]
