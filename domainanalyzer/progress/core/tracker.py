"""
Core Progress Tracker Module

Main progress tracker class that binds a StageList to a renderer.
"""

import logging
import time
from abc import ABC, abstractmethod
from enum import Enum
from threading import RLock
from typing import Any, Dict, List, Optional, Sequence, TYPE_CHECKING

from domainanalyzer.progress.core.stage import Stage, StageList

if TYPE_CHECKING:
    from domainanalyzer.logging import LoggingManager

logger = logging.getLogger(__name__)


class ProgressMode(Enum):
    """Progress display modes."""
    AUTO = "auto"      # Automatically choose best renderer
    ON = "on"          # Force progress display (prefer rich)
    OFF = "off"        # Disable progress display


class ProgressRenderer(ABC):
    """Abstract base class for progress renderers."""

    @abstractmethod
    def start(self, title: str = "") -> None:
        """Start the progress display."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop the progress display."""
        pass

    @abstractmethod
    def update_stage(self, index: int, stage: Stage) -> None:
        """Update progress for the stage at ``index``."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this renderer is available in the current environment."""
        pass

    def display_completion_summary(self, stats: Dict[str, Any]) -> None:
        """Display completion summary. Default no-op."""
        return


class ProgressTracker:
    """
    Progress tracker that owns the StageList of one wizard step.

    Forwards every stage update to a pluggable renderer and switches the
    LoggingManager into progress mode while the display is live. Use it as a
    context manager so the display is torn down on every exit path.
    """

    def __init__(
        self,
        stage_names: Sequence[str],
        descriptions: Optional[Sequence[str]] = None,
        mode: ProgressMode = ProgressMode.AUTO,
        title: str = "Domain Analysis",
        logging_manager: Optional["LoggingManager"] = None,
    ) -> None:
        """
        Initialize progress tracker.

        Args:
            stage_names: Ordered stage labels
            descriptions: Optional per-stage descriptions
            mode: Progress display mode
            title: Panel title shown by the renderer
            logging_manager: LoggingManager instance (optional)
        """
        self.mode = mode
        self.title = title
        self._lock = RLock()
        self.stages = StageList.initialize(stage_names, descriptions=descriptions)
        self.stages.add_callback(self._on_stage_update)
        self._renderer: Optional[ProgressRenderer] = None
        self._is_started = False
        self._started_at: Optional[float] = None

        self._logging_manager = logging_manager
        self._logging_mode_active = False

    def set_renderer(self, renderer: Optional[ProgressRenderer]) -> None:
        """Set the progress renderer."""
        with self._lock:
            self._renderer = renderer

    def set_logging_manager(self, logging_manager: Optional["LoggingManager"]) -> None:
        """Attach the LoggingManager toggled on start/stop."""
        with self._lock:
            self._logging_manager = logging_manager

    @property
    def renderer(self) -> Optional[ProgressRenderer]:
        return self._renderer

    @property
    def is_started(self) -> bool:
        return self._is_started

    @property
    def elapsed(self) -> float:
        """Seconds since start(), 0.0 before."""
        if self._started_at is None:
            return 0.0
        return time.monotonic() - self._started_at

    def start(self) -> None:
        """Start progress tracking and display."""
        with self._lock:
            if self._is_started:
                return

            self._started_at = time.monotonic()

            if self._logging_manager and self.mode != ProgressMode.OFF:
                try:
                    self._logging_manager.enable_progress_mode(self.title)
                    self._logging_mode_active = True
                    logger.debug("Enabled progress mode in logging manager")
                except Exception as e:
                    logger.warning(f"Failed to enable logging progress mode: {e}")

            if not self._renderer and self.mode != ProgressMode.OFF:
                self._renderer = self._auto_select_renderer()

            if self._renderer and self.mode != ProgressMode.OFF:
                try:
                    self._renderer.start(self.title)
                    logger.debug(f"Started progress renderer: {type(self._renderer).__name__}")
                    for index, stage in enumerate(self.stages.snapshot()):
                        self._renderer.update_stage(index, stage)
                except Exception as e:
                    logger.warning(f"Failed to start progress renderer: {e}")
                    self._renderer = None

            self._is_started = True

    def stop(self) -> None:
        """Stop progress tracking and display."""
        with self._lock:
            if not self._is_started:
                return

            if self._renderer:
                try:
                    self._renderer.stop()
                    logger.debug(f"Stopped progress renderer: {type(self._renderer).__name__}")
                except Exception as e:
                    logger.warning(f"Error stopping progress renderer: {e}")

            if self._logging_manager and self._logging_mode_active:
                try:
                    self._logging_manager.disable_progress_mode()
                    self._logging_mode_active = False
                    logger.debug("Disabled progress mode in logging manager")
                except Exception as e:
                    logger.warning(f"Failed to disable logging progress mode: {e}")

            self._is_started = False

    def _on_stage_update(self, index: int, stage: Stage) -> None:
        """Forward stage updates to the renderer."""
        if self._renderer and self._is_started and self.mode != ProgressMode.OFF:
            try:
                self._renderer.update_stage(index, stage)
            except Exception as e:
                # Rendering errors never affect progress state
                logger.warning(f"Renderer update failed for stage {stage.name}: {e}")

    def _auto_select_renderer(self) -> Optional[ProgressRenderer]:
        """Automatically select the best available renderer."""
        with self._lock:
            if self._renderer is not None:
                return self._renderer

            try:
                from domainanalyzer.progress.config import auto_select_renderer

                renderer = auto_select_renderer()
                if renderer:
                    logger.debug(f"Auto-selected renderer: {type(renderer).__name__}")
                else:
                    logger.warning("No suitable progress renderer available")

                return renderer
            except Exception as e:
                logger.error(f"Failed to auto-select renderer: {e}")
                return None

    def get_summary(self) -> List[Dict[str, Any]]:
        """Get summary of all stages, in order."""
        return [
            {
                'name': stage.name,
                'status': stage.status.value,
                'progress': stage.progress,
                'description': stage.description,
                'error': stage.error,
            }
            for stage in self.stages.snapshot()
        ]

    def has_failures(self) -> bool:
        """Check if any stage has failed."""
        return self.stages.any_failed()

    def is_complete(self) -> bool:
        """Check if all stages are complete."""
        return self.stages.all_completed()

    def display_completion_summary(self, stats: Dict[str, Any]) -> None:
        """Display step completion summary via renderer when available."""
        if self._renderer and self._is_started and self.mode != ProgressMode.OFF:
            try:
                self._renderer.display_completion_summary(stats)
            except Exception as e:
                logger.warning(f"Failed to display completion summary: {e}")

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.stop()
