"""Logging setup for the terraspec command."""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "terraspec"
_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_HANDLER_MARK = "_terraspec_handler"


def configure_logging(level: int = logging.WARNING) -> logging.Logger:
    """Route terraspec logs to the current stderr at ``level``; replaces any earlier handler."""

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for existing in list(logger.handlers):
        if getattr(existing, _HANDLER_MARK, False):
            logger.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler.setLevel(level)
    setattr(handler, _HANDLER_MARK, True)
    logger.addHandler(handler)
    logger.propagate = False
    return logger
