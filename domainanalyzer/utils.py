"""
Common Utilities

Basic utility functions used across the application with no external dependencies.
This module is intentionally kept minimal to avoid circular imports.
"""

import logging

logger = logging.getLogger(__name__)


def log_section_header(title: str, width: int = 70) -> None:
    """
    Log a section header with visual separator.

    Args:
        title: Section title to display
        width: Width of separator line in characters (default: 70)

    Example:
        >>> log_section_header("STEP: Intent Phrases")
        # Logs:
        # ======================================================================
        # STEP: Intent Phrases
        # ======================================================================
    """
    separator = "=" * width
    logger.info(separator)
    logger.info(title)
    logger.info(separator)


def format_duration(seconds: float) -> str:
    """Human readable duration, e.g. ``1m 05.2s`` or ``4.3s``."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, remainder = divmod(seconds, 60)
    return f"{int(minutes)}m {remainder:04.1f}s"
