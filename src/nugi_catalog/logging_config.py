# src/nugi_catalog/logging_config.py
from __future__ import annotations

import logging
from typing import Union

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "nugi_catalog"


def setup_logging(level: Union[int, str] = logging.INFO, console: Console | None = None) -> logging.Logger:
    """
    Attach a rich console handler to the package logger. Safe to call more
    than once; previous handlers are replaced.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    handler = RichHandler(console=console, show_path=False, rich_tracebacks=True, markup=False)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="%H:%M:%S"))
    logger.addHandler(handler)
    return logger

