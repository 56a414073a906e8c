"""Minimal logging utilities for linemachine.

Provides a simple get_logger function that wraps the standard library logging.

Example:
    >>> from linemachine.utils.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.debug("Entering state %s", "Body")
"""

from __future__ import annotations

import logging


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given name.

    Returns a standard library logger with the "linemachine." prefix.

    Args:
        name: Logger name (typically __name__)

    Returns:
        logging.Logger instance

    Example:
        >>> logger = get_logger("grammar")
        >>> logger.name
        'linemachine.grammar'
    """
    if not (name == "linemachine" or name.startswith("linemachine.")):
        name = f"linemachine.{name}"
    return logging.getLogger(name)
