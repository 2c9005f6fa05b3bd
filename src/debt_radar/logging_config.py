"""
Logging configuration for Debt Radar.

Console output goes through a rich handler on the ``debt_radar`` logger;
module loggers are children of it, so one call configures the whole engine.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from .exceptions import InvalidConfigError

LOGGER_NAME = "debt_radar"

_LEVELS = {
    "quiet": logging.ERROR,
    "normal": logging.INFO,
    "verbose": logging.DEBUG,
}


def setup_logging(verbosity: str = "normal", log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach a rich console handler (and optionally a file handler).

    Calling it again replaces the handlers from the previous call instead of
    stacking them.

    Args:
        verbosity: "quiet" (errors only), "normal" (INFO) or "verbose" (DEBUG,
            with source paths and tracebacks showing locals)
        log_file: Optional file path logs are appended to

    Returns:
        The configured ``debt_radar`` logger

    Raises:
        InvalidConfigError: If verbosity is not one of the known levels
    """
    if verbosity not in _LEVELS:
        raise InvalidConfigError("verbosity", verbosity, "expected quiet, normal or verbose")
    level = _LEVELS[verbosity]
    verbose = verbosity == "verbose"

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        show_path=verbose,
    )
    console_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        logger.addHandler(file_handler)

    logger.setLevel(level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the ``debt_radar`` namespace (the root one for ``None``)."""
    if name is None:
        return logging.getLogger(LOGGER_NAME)
    if not name.startswith(LOGGER_NAME):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)
