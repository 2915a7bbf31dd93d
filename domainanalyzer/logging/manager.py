"""
Logging Manager

Owns the file and console handlers of the CLI. While a wizard step's stage
display is live the console is put into progress mode: warnings wait until
the step ends, errors are shown at once in a panel.
"""

import logging
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from threading import RLock
from typing import Iterator, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from domainanalyzer.logging.handlers import ProgressAwareConsoleHandler

logger = logging.getLogger(__name__)

FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
CONSOLE_FORMAT = '%(levelname)s - %(message)s'
DEBUG_CONSOLE_FORMAT = '%(message)s'

# Connection pool chatter drowns the stream events at DEBUG
NOISY_LOGGERS = ('urllib3', 'requests')


@dataclass(frozen=True)
class BufferedWarning:
    """A console warning held back while a step display is live."""
    logged_at: float
    message: str
    source: str


class LoggingManager:
    """
    Console and file logging for the analyzer CLI.

    The file handler always gets DEBUG. The console handler honours the
    level picked on the command line and goes quiet during progress mode.
    Progress mode is reference counted so nested trackers can share it; the
    step that enabled it first names the warnings summary.
    """

    _global_lock = RLock()
    _instance: Optional['LoggingManager'] = None

    def __init__(self, console: Optional[Console] = None, max_buffered_messages: int = 50) -> None:
        self._lock = RLock()
        self._console_handler: Optional[ProgressAwareConsoleHandler] = None
        self._file_handler: Optional[logging.FileHandler] = None
        self._saved_handlers: List[logging.Handler] = []
        self._saved_level: Optional[int] = None

        self._display_depth = 0
        self._display_title: Optional[str] = None

        self._pending: List[BufferedWarning] = []
        self._max_buffered_messages = max_buffered_messages

        self._error_console = console

    @classmethod
    def get_instance(cls) -> 'LoggingManager':
        """Process-wide manager used by main()."""
        with cls._global_lock:
            if cls._instance is None:
                cls._instance = LoggingManager()
            return cls._instance

    @property
    def error_console(self) -> Console:
        if self._error_console is None:
            self._error_console = Console(stderr=True)
        return self._error_console

    def setup(self, log_file: Path, console_level: int = logging.WARNING) -> None:
        """
        Install the file and console handlers on the root logger.

        Args:
            log_file: Log file path; parent directories are created
            console_level: WARNING by default, INFO with --verbose (step
                headers and summaries), DEBUG with --debug (every stage
                transition and stream event)
        """
        with self._lock:
            root_logger = logging.getLogger()
            self._saved_handlers = list(root_logger.handlers)
            self._saved_level = root_logger.level

            self._file_handler = self._build_file_handler(log_file)
            self._console_handler = self._build_console_handler(console_level)

            root_logger.handlers.clear()
            root_logger.setLevel(logging.DEBUG)
            root_logger.addHandler(self._file_handler)
            root_logger.addHandler(self._console_handler)

            for name in NOISY_LOGGERS:
                logging.getLogger(name).setLevel(logging.INFO)

            logger.debug(f"Logging to {log_file} (console level {logging.getLevelName(console_level)})")

    @staticmethod
    def _build_file_handler(log_file: Path) -> logging.FileHandler:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding='utf-8')
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(FILE_FORMAT))
        return handler

    def _build_console_handler(self, console_level: int) -> ProgressAwareConsoleHandler:
        handler = ProgressAwareConsoleHandler(stream=sys.stdout, logging_manager=self)
        handler.setLevel(console_level)
        handler.setFormatter(logging.Formatter(
            DEBUG_CONSOLE_FORMAT if console_level < logging.INFO else CONSOLE_FORMAT
        ))
        return handler

    def enable_progress_mode(self, title: Optional[str] = None) -> None:
        """Quiet the console while the stage display of ``title`` is live."""
        with self._lock:
            self._display_depth += 1
            if self._display_depth > 1:
                return

            self._display_title = title
            self._pending.clear()
            if self._console_handler is None:
                logger.debug("Progress mode without a console handler; nothing to quiet")
            else:
                self._console_handler.set_progress_mode(True)
            logger.debug(f"Console quiet for step display: {title or 'untitled'}")

    def disable_progress_mode(self) -> None:
        """Leave progress mode once the outermost display has stopped."""
        with self._lock:
            if self._display_depth == 0:
                return
            self._display_depth -= 1
            if self._display_depth > 0:
                return

            if self._console_handler is not None:
                self._console_handler.set_progress_mode(False)
            self._display_buffered_warnings()
            self._display_title = None
            logger.debug("Console logging restored")

    @contextmanager
    def progress_mode(self, title: Optional[str] = None) -> Iterator[None]:
        """
        Scope progress mode to a block.

            with logging_manager.progress_mode("Intent Phrases"):
                driver.run(stages)
        """
        self.enable_progress_mode(title)
        try:
            yield
        finally:
            self.disable_progress_mode()

    def is_progress_mode_active(self) -> bool:
        with self._lock:
            return self._display_depth > 0

    @property
    def buffered_warnings(self) -> List[str]:
        with self._lock:
            return [warning.message for warning in self._pending]

    def buffer_warning(self, record: logging.LogRecord) -> None:
        """Hold a WARNING until the display stops; the oldest is dropped when full."""
        if self._console_handler is not None:
            message = self._console_handler.format(record)
        else:
            message = record.getMessage()

        with self._lock:
            self._pending.append(BufferedWarning(time.time(), message, record.name))
            overflow = len(self._pending) - self._max_buffered_messages
            if overflow > 0:
                del self._pending[:overflow]

    def display_critical_error(self, record: logging.LogRecord) -> None:
        """Print an ERROR record as a red panel on stderr, over the live display."""
        body = Text()
        body.append("ERROR", style="bold red")
        if record.name:
            body.append(f" ({record.name})", style="dim red")
        body.append(f": {record.getMessage()}", style="red")

        title = "⚠️  Step Error"
        if self._display_title:
            title = f"⚠️  {self._display_title} failed"

        try:
            self.error_console.print(Panel(body, title=title, border_style="red", padding=(0, 1), expand=False))
        except Exception:
            sys.stderr.write(f"ERROR: {record.getMessage()} ({record.name})\n")
            sys.stderr.flush()

    def _display_buffered_warnings(self) -> None:
        if not self._pending:
            return

        pending, self._pending = self._pending, []
        step = f" during {self._display_title}" if self._display_title else " during the step"
        try:
            console = self.error_console
            console.print(Text(f"\n⚠️  {len(pending)} warning(s){step}:", style="yellow"))
            now = time.time()
            for warning in pending:
                console.print(Text.assemble((f"[{now - warning.logged_at:.1f}s ago] ", "dim"), warning.message))
        except Exception as e:
            logger.error(f"Failed to display buffered warnings: {e}")

    def cleanup(self) -> None:
        """Flush held warnings, put back the original root handlers and close the log file."""
        with self._lock:
            self._display_depth = 0
            if self._console_handler is not None:
                self._console_handler.set_progress_mode(False)
            self._display_buffered_warnings()
            self._display_title = None

            root_logger = logging.getLogger()
            root_logger.handlers[:] = self._saved_handlers
            if self._saved_level is not None:
                root_logger.setLevel(self._saved_level)

            if self._file_handler is not None:
                self._file_handler.close()
                self._file_handler = None
            self._console_handler = None
