"""
Progress Tracking Module

Staged progress tracking for the domain analyzer wizard: the StageList model,
simulated and event-driven drivers, the completion gate and display renderers
(rich, tqdm, off).
"""

from domainanalyzer.progress.core.tracker import ProgressTracker, ProgressRenderer, ProgressMode
from domainanalyzer.progress.core.stage import Stage, StageList, StageStatus
from domainanalyzer.progress.display.rich_renderer import RichProgressRenderer, is_rich_available
from domainanalyzer.progress.display.tqdm_renderer import TqdmProgressRenderer, is_tqdm_available
from domainanalyzer.progress.drivers import (
    CancellationToken,
    DriverOutcome,
    ProgressDriver,
    GateResult,
    SimulatedDriver,
    EventDrivenDriver,
    PhasePolicy,
    ProgressEvent,
)
from domainanalyzer.progress.gate import CompletionGate, GateState
from domainanalyzer.progress.config import (
    ProgressConfig,
    get_config,
    set_config,
    update_config,
    get_renderer_registry,
    auto_select_renderer
)
from domainanalyzer.progress.utils import (
    create_progress_tracker,
    setup_progress_tracker,
)

__all__ = [
    'ProgressTracker',
    'ProgressRenderer',
    'ProgressMode',
    'Stage',
    'StageList',
    'StageStatus',
    'RichProgressRenderer',
    'TqdmProgressRenderer',
    'is_rich_available',
    'is_tqdm_available',
    'CancellationToken',
    'DriverOutcome',
    'ProgressDriver',
    'GateResult',
    'SimulatedDriver',
    'EventDrivenDriver',
    'PhasePolicy',
    'ProgressEvent',
    'CompletionGate',
    'GateState',
    'ProgressConfig',
    'get_config',
    'set_config',
    'update_config',
    'get_renderer_registry',
    'auto_select_renderer',
    'create_progress_tracker',
    'setup_progress_tracker',
]
