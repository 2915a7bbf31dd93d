"""
Rich Progress Renderer

Stage list display built on the Rich library: one progress bar per stage,
a details table and a summary line inside a live panel.
"""

import importlib.util
import logging
import time
from threading import Lock, RLock
from typing import Any, Dict, Optional

from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.progress import (
    Progress, TaskID, BarColumn, TextColumn,
    TimeElapsedColumn, SpinnerColumn
)
from rich.table import Table
from rich.text import Text

from domainanalyzer.progress.core.tracker import ProgressRenderer
from domainanalyzer.progress.core.stage import Stage, StageStatus

logger = logging.getLogger(__name__)

STATUS_COLORS = {
    StageStatus.PENDING: "dim",
    StageStatus.RUNNING: "blue",
    StageStatus.COMPLETED: "green",
    StageStatus.FAILED: "red",
}

STATUS_ICONS = {
    StageStatus.PENDING: "⏳",
    StageStatus.RUNNING: "🔄",
    StageStatus.COMPLETED: "✅",
    StageStatus.FAILED: "❌",
}


class RichProgressRenderer(ProgressRenderer):
    """
    Rich-based progress renderer.

    Features:
    - Individual progress bar for each stage
    - Color-coded status indicators
    - Highlight of the current running stage
    - Debounced real-time updates
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        """
        Initialize Rich progress renderer.

        Args:
            console: Optional Rich console instance
        """
        self.console = console or Console()
        self._lock = RLock()
        self._live: Optional[Live] = None
        self._title = ""
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=self.console
        )
        self._tasks: Dict[int, TaskID] = {}
        self._stage_data: Dict[int, Stage] = {}
        # Guards _stage_data only; the live refresh thread reads it while rendering
        self._data_lock = Lock()
        self._start_time = time.time()
        self._last_update_time = 0.0

    def is_available(self) -> bool:
        """Rich needs nothing beyond an importable library."""
        return is_rich_available()

    def start(self, title: str = "") -> None:
        """Start the Rich live display."""
        from domainanalyzer.progress.config import get_config
        config = get_config()

        with self._lock:
            if self._live is not None:
                return

            self._title = title
            self._start_time = time.time()
            # Every refresh rebuilds the layout, so the table follows the bars
            self._live = Live(
                console=self.console,
                get_renderable=self._create_layout,
                refresh_per_second=config.rich_refresh_rate,
                transient=False
            )
            self._live.start()

    def stop(self) -> None:
        """Stop the Rich live display; stopping renders the final layout."""
        with self._lock:
            if self._live is not None:
                self._live.stop()
                self._live = None

    def update_stage(self, index: int, stage: Stage) -> None:
        """Update the bar for one stage, debouncing repaints of running-progress ticks."""
        from domainanalyzer.progress.config import get_config
        config = get_config()

        with self._lock:
            with self._data_lock:
                self._stage_data[index] = stage

            if index not in self._tasks:
                self._tasks[index] = self._progress.add_task(
                    description=self._get_stage_description(stage),
                    total=100,
                    completed=stage.progress
                )
            else:
                self._progress.update(
                    self._tasks[index],
                    description=self._get_stage_description(stage),
                    completed=stage.progress
                )

            # Status changes repaint at once; running ticks wait for the auto refresh
            if config.enable_update_debouncing and stage.status == StageStatus.RUNNING:
                now = time.time()
                if now - self._last_update_time < config.debounce_interval:
                    return
                self._last_update_time = now

            if self._live:
                try:
                    self._live.refresh()
                except Exception as e:
                    logger.warning(f"Failed to update Rich display: {e}")

    def _get_stage_description(self, stage: Stage) -> str:
        color = STATUS_COLORS.get(stage.status, "white")
        icon = STATUS_ICONS.get(stage.status, "•")
        return f"[{color}]{icon} {stage.name}[/{color}]"

    def _create_layout(self):
        """Build the whole panel from the latest stage snapshots."""
        with self._data_lock:
            stages = dict(self._stage_data)

        progress_panel = Panel(
            self._progress,
            title=self._title or "Progress",
            border_style="blue",
            padding=(1, 2)
        )

        details_panel = Panel(
            self._create_details_table(stages),
            title="Stage Details",
            border_style="dim",
            padding=(0, 1)
        )

        stats_panel = Panel(
            self._create_stats_text(stages),
            title="Summary",
            border_style="green",
            padding=(0, 1)
        )

        main_table = Table.grid(padding=1)
        main_table.add_column()
        main_table.add_row(progress_panel)
        main_table.add_row(details_panel)
        main_table.add_row(stats_panel)
        return main_table

    def _create_details_table(self, stages: Dict[int, Stage]) -> Table:
        """Create detailed information table."""
        table = Table(show_header=True, header_style="bold")
        table.add_column("Stage", style="cyan", no_wrap=True)
        table.add_column("Status", style="white")
        table.add_column("Progress", style="blue")
        table.add_column("Details", style="dim")

        running = sorted(i for i, s in stages.items() if s.status == StageStatus.RUNNING)
        current = running[0] if running else None

        for index in sorted(stages):
            stage = stages[index]
            color = STATUS_COLORS.get(stage.status, "white")
            details_text = stage.description or "-"
            if stage.error:
                details_text = f"Error: {stage.error}"

            name = stage.name
            if index == current:
                name = f"[bold]▶ {name}[/bold]"

            table.add_row(
                name,
                f"[{color}]{stage.status.value.title()}[/{color}]",
                f"{stage.progress}%",
                details_text
            )

        return table

    def _create_stats_text(self, stages: Dict[int, Stage]) -> Text:
        """Create summary statistics text."""
        elapsed = time.time() - self._start_time

        status_counts: Dict[StageStatus, int] = {}
        for stage in stages.values():
            status_counts[stage.status] = status_counts.get(stage.status, 0) + 1

        stats_parts = [f"Elapsed: {elapsed:.1f}s"]
        for status in (StageStatus.COMPLETED, StageStatus.RUNNING, StageStatus.FAILED):
            if status in status_counts:
                stats_parts.append(f"{STATUS_ICONS[status]} {status_counts[status]} {status.value}")

        return Text(" | ".join(stats_parts))

    def display_completion_summary(self, stats: Dict[str, Any]) -> None:
        """Display step completion summary panel."""
        with self._lock:
            try:
                summary_table = Table.grid(padding=(0, 2))
                summary_table.add_column(style="cyan bold")
                summary_table.add_column()

                for key, value in stats.items():
                    label = key.replace('_', ' ').capitalize() + ":"
                    summary_table.add_row(label, f"{value}")

                panel = Panel(
                    summary_table,
                    title=Text("✓ STEP COMPLETE", style="bold green"),
                    border_style="green",
                    padding=(1, 2),
                )

                self.console.print()
                self.console.print(panel)
                self.console.print()
                logger.debug("Displayed Rich completion summary")
            except Exception as e:
                logger.warning(f"Failed to display Rich completion summary: {e}")


def is_rich_available() -> bool:
    """Check if Rich library is available."""
    return importlib.util.find_spec("rich") is not None
