"""
Progress Utilities

Helper functions for setting up and managing progress tracking.
"""

import logging
from typing import Optional, Sequence

from .core import ProgressTracker, ProgressMode, ProgressRenderer

logger = logging.getLogger(__name__)


def parse_progress_mode(mode_str: str = "auto") -> ProgressMode:
    """
    Parse a progress mode string, falling back to AUTO.

    Args:
        mode_str: Progress mode string ("auto", "on", "off")
    """
    try:
        return ProgressMode((mode_str or "auto").lower())
    except ValueError:
        logger.warning(f"Invalid progress mode '{mode_str}', using 'auto'")
        return ProgressMode.AUTO


def create_progress_tracker(
    stage_names: Sequence[str],
    mode_str: str = "auto",
    title: str = "Domain Analysis",
    descriptions: Optional[Sequence[str]] = None,
) -> ProgressTracker:
    """
    Create a progress tracker for the given stages with the specified mode.

    Args:
        stage_names: Ordered stage labels
        mode_str: Progress mode string ("auto", "on", "off")
        title: Panel title
        descriptions: Optional per-stage descriptions

    Returns:
        ProgressTracker instance
    """
    return ProgressTracker(
        stage_names,
        descriptions=descriptions,
        mode=parse_progress_mode(mode_str),
        title=title,
    )


def setup_progress_tracker(
    stage_names: Sequence[str],
    mode_str: str = "auto",
    title: str = "Domain Analysis",
    descriptions: Optional[Sequence[str]] = None,
    renderer: Optional[ProgressRenderer] = None,
) -> ProgressTracker:
    """
    Setup a complete progress tracker with automatic renderer selection.

    Args:
        stage_names: Ordered stage labels
        mode_str: Progress mode string ("auto", "on", "off")
        title: Panel title
        descriptions: Optional per-stage descriptions
        renderer: Optional specific renderer to use

    Returns:
        Configured ProgressTracker instance
    """
    tracker = create_progress_tracker(stage_names, mode_str, title=title, descriptions=descriptions)

    if not renderer and tracker.mode != ProgressMode.OFF:
        from .config import auto_select_renderer
        renderer = auto_select_renderer()

    if renderer:
        tracker.set_renderer(renderer)
        logger.debug(f"Progress tracker setup with {type(renderer).__name__}")
    else:
        logger.debug("Progress tracker setup without renderer")

    return tracker
