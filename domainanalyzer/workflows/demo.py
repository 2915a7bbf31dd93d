"""
Demo Workflow Module

Runs the simulated driver over one of the wizard's stage lists without a
backend, to preview the progress display.
"""

import logging
from typing import Dict, List, Optional

from domainanalyzer.progress.drivers.simulated import SimulatedDriver
from domainanalyzer.progress.gate import CompletionGate
from domainanalyzer.progress.utils import setup_progress_tracker
from domainanalyzer.workflows.common import StepResult, run_step
from domainanalyzer.workflows.intent_phrases import INTENT_STAGES, INTENT_STAGE_DESCRIPTIONS
from domainanalyzer.workflows.keywords import KEYWORD_STAGES, KEYWORD_STAGE_DESCRIPTIONS
from domainanalyzer.workflows.onboarding import ONBOARDING_STAGES

logger = logging.getLogger(__name__)

DEMO_STAGE_SETS: Dict[str, tuple] = {
    'onboard': (ONBOARDING_STAGES, None),
    'keywords': (KEYWORD_STAGES, KEYWORD_STAGE_DESCRIPTIONS),
    'intent-phrases': (INTENT_STAGES, INTENT_STAGE_DESCRIPTIONS),
}


def run_demo_workflow(
    stage_set: str = 'intent-phrases',
    stage_names: Optional[List[str]] = None,
    step: Optional[int] = None,
    step_delay: Optional[float] = None,
    progress_mode: str = "auto",
    logging_manager=None,
) -> StepResult:
    """
    Simulate one wizard step.

    Args:
        stage_set: Which wizard step's stages to show
        stage_names: Custom stage labels (overrides stage_set)
        step: Progress increment per tick
        step_delay: Seconds between ticks
        progress_mode: Progress display mode ("auto", "on", "off")
        logging_manager: LoggingManager toggled while the display is live

    Raises:
        ValueError: If stage_set is unknown
    """
    if stage_names:
        names, descriptions = list(stage_names), None
    elif stage_set in DEMO_STAGE_SETS:
        names, descriptions = DEMO_STAGE_SETS[stage_set]
    else:
        raise ValueError(
            f"Unknown stage set '{stage_set}', expected one of: {', '.join(DEMO_STAGE_SETS)}"
        )

    tracker = setup_progress_tracker(names, progress_mode, title="Demo", descriptions=descriptions)
    tracker.set_logging_manager(logging_manager)
    driver = SimulatedDriver(step=step, step_delay=step_delay)
    gate = CompletionGate()

    return run_step(f"Demo ({stage_set if not stage_names else 'custom'})", tracker, driver, gate)
