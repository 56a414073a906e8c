"""Utility modules for linemachine.

Provides:
- logger: get_logger for logging
"""

from linemachine.utils.logger import get_logger

__all__ = [
    "get_logger",
]
