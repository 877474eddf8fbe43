"""Whisker utility modules.

- logging: Standardized logging with human/verbose/JSON modes
"""

from whisker.utils.logging import get_logger, setup_logging

__all__ = [
    "get_logger",
    "setup_logging",
]
