"""
tqdm Progress Renderer

Provides fallback progress display using tqdm for broader compatibility.
"""

import importlib.util
import sys
from threading import RLock
from typing import Dict, Optional, TextIO

from tqdm import tqdm

from domainanalyzer.progress.core.tracker import ProgressRenderer
from domainanalyzer.progress.core.stage import Stage, StageStatus

STATUS_INDICATORS = {
    StageStatus.PENDING: "⏳",
    StageStatus.RUNNING: "🔄",
    StageStatus.COMPLETED: "✓",
    StageStatus.FAILED: "✗",
}


class TqdmProgressRenderer(ProgressRenderer):
    """
    tqdm-based progress renderer for compatibility.

    Features:
    - One percentage bar per stage, stacked in stage order
    - Compatible with most terminal environments
    - Fallback when Rich is not wanted
    """

    def __init__(self, file: Optional[TextIO] = None, disable_on_non_tty: bool = True):
        """
        Initialize tqdm progress renderer.

        Args:
            file: Output stream (defaults to stderr)
            disable_on_non_tty: Disable progress when not in TTY environment
        """
        self.file = file or sys.stderr
        self.disable_on_non_tty = disable_on_non_tty
        self._lock = RLock()
        self._progress_bars: Dict[int, tqdm] = {}
        self._is_started = False

    def is_available(self) -> bool:
        """Check if tqdm is available."""
        return is_tqdm_available()

    def start(self, title: str = ""):
        """Start tqdm progress display."""
        with self._lock:
            if self._is_started:
                return

            self._is_started = True
            if title:
                tqdm.write(title, file=self.file)
            # bars are created on-demand when stages update

    def stop(self):
        """Stop tqdm progress display."""
        with self._lock:
            if not self._is_started:
                return

            for pbar in self._progress_bars.values():
                pbar.close()

            self._progress_bars.clear()
            self._is_started = False

    def update_stage(self, index: int, stage: Stage):
        """Update progress for the stage at ``index``."""
        if not self._is_started:
            return

        with self._lock:
            if index not in self._progress_bars:
                self._create_progress_bar(index, stage)
            self._update_progress_bar(index, stage)

    def _create_progress_bar(self, index: int, stage: Stage):
        """Create a new tqdm progress bar for a stage."""
        disable_progress = (
            self.disable_on_non_tty and
            not self.file.isatty() if hasattr(self.file, 'isatty') else False
        )

        self._progress_bars[index] = tqdm(
            desc=self._format_description(stage),
            total=100,
            initial=0,
            file=self.file,
            disable=disable_progress,
            ascii=True,  # For broader compatibility
            unit='%',
            dynamic_ncols=True,
            position=index  # Stack bars in stage order
        )

    def _update_progress_bar(self, index: int, stage: Stage):
        """Update an existing tqdm progress bar."""
        pbar = self._progress_bars[index]

        pbar.set_description(self._format_description(stage), refresh=False)
        diff = stage.progress - getattr(pbar, 'n', 0)
        if diff != 0:
            pbar.update(diff)

        if stage.status == StageStatus.FAILED and stage.error:
            tqdm.write(f"Error in {stage.name}: {stage.error}", file=self.file)
        pbar.refresh()

    def _format_description(self, stage: Stage) -> str:
        """Format description for tqdm progress bar."""
        indicator = STATUS_INDICATORS.get(stage.status, "•")
        base_desc = f"{indicator} {stage.name}"

        if stage.description and stage.status == StageStatus.RUNNING:
            description = stage.description
            if len(description) > 40:
                description = description[:37] + "..."
            base_desc += f": {description}"

        return base_desc

    def write_message(self, message: str):
        """Write a message above all progress bars."""
        tqdm.write(message, file=self.file)


def is_tqdm_available() -> bool:
    """Check if tqdm library is available."""
    return importlib.util.find_spec("tqdm") is not None
