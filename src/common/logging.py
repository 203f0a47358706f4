"""Logging setup for the valuation engine.

Modules log through ``logging.getLogger(__name__)``, so every logger lives
under the ``src.valuation`` package logger. Entry points call
``setup_logging()`` once to attach a handler there.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

PACKAGE_LOGGER = "src.valuation"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: int = logging.INFO,
    module_name: str = PACKAGE_LOGGER,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Attach one formatted stream handler to ``module_name``.

    Child loggers propagate into it. Calling again only updates the level,
    so a repeated setup never duplicates output.

    Args:
        level: Logging level for the logger and its handler.
        module_name: Logger to configure (default: the package logger).
        stream: Output stream (default stderr).

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(module_name)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)

    return logger
