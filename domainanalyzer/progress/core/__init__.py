"""
Core Progress Tracking Components

Contains the stage model and the tracker.
"""

from domainanalyzer.progress.core.tracker import ProgressTracker, ProgressRenderer, ProgressMode
from domainanalyzer.progress.core.stage import Stage, StageList, StageStatus

__all__ = [
    'ProgressTracker',
    'ProgressRenderer',
    'ProgressMode',
    'Stage',
    'StageList',
    'StageStatus',
]
