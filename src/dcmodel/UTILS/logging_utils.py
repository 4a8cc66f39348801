"""
Logging setup for the command line entry point.

Library modules only create loggers; handlers are installed here, once,
by the CLI.
"""
import logging
import sys
from typing import Optional, TextIO

PACKAGE_LOGGER = "dcmodel"


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int) -> None:
        super().__init__()
        self._max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self._max_level


def configure_logging(
    verbose: bool = False,
    *,
    stream: Optional[TextIO] = None,
    formatter: Optional[logging.Formatter] = None,
) -> logging.Logger:
    """Configure the package logger:

    - WARNING/ERROR/CRITICAL are always shown
    - DEBUG/INFO are shown with ``verbose``, on a separate handler

    Everything goes to stderr by default, so that stdout carries only the
    rendered document.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    if formatter is None:
        formatter = logging.Formatter("%(name)s - %(levelname)s - %(message)s")
    stream = stream if stream is not None else sys.stderr

    if verbose:
        detail_handler = logging.StreamHandler(stream=stream)
        detail_handler.setLevel(logging.DEBUG)
        detail_handler.addFilter(_MaxLevelFilter(logging.WARNING - 1))
        detail_handler.setFormatter(formatter)
        logger.addHandler(detail_handler)

    warning_handler = logging.StreamHandler(stream=stream)
    warning_handler.setLevel(logging.WARNING)
    warning_handler.setFormatter(formatter)
    logger.addHandler(warning_handler)
    return logger
