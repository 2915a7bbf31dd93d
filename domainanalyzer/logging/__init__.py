"""
Logging Module - Progress-Aware Logging System

Keeps console logging from tearing through a live stage display. While a
ProgressTracker is started, console output is held back (warnings buffered,
errors shown as panels) and the log file keeps receiving everything.

Usage:
    from domainanalyzer.logging import LoggingManager

    manager = LoggingManager.get_instance()
    manager.setup(log_file, console_level)

    with manager.progress_mode():
        driver.run(stages)
"""

from domainanalyzer.logging.manager import LoggingManager
from domainanalyzer.logging.handlers import ProgressAwareConsoleHandler

__all__ = [
    'LoggingManager',
    'ProgressAwareConsoleHandler',
]
