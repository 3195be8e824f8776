"""Logging setup for the storefront package."""

import logging
import sys

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Install one stdout handler on the package logger. Safe to call twice."""
    logger = logging.getLogger("storefront")
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)

    logger.propagate = False
    return logger


__all__ = ("configure_logging",)
