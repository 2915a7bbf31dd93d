"""
Common Workflow Utilities

Shared helpers for the wizard steps: run one driver under a tracker and a
completion gate, time it and log a consistent summary.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from domainanalyzer.exceptions import AnalyzerError
from domainanalyzer.progress.core import ProgressTracker
from domainanalyzer.progress.drivers.base import DriverOutcome, ProgressDriver
from domainanalyzer.progress.gate import CompletionGate, GateState
from domainanalyzer.utils import format_duration, log_section_header

logger = logging.getLogger(__name__)


@dataclass
class StepResult:
    """Outcome of one wizard step."""
    name: str
    state: GateState
    outcome: Optional[DriverOutcome] = None
    results: List[Any] = field(default_factory=list)
    error: Optional[str] = None
    fetch_error: Optional[str] = None
    payload: Any = None
    response_time: float = 0.0
    stages: List[Dict[str, Any]] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.state == GateState.RESULTS

    def to_stats(self) -> Dict[str, Any]:
        """Flat summary used for logging and the completion panel."""
        stats: Dict[str, Any] = {
            'step': self.name,
            'status': self.state.value,
            'outcome': self.outcome.value if self.outcome else 'none',
            'stages_completed': f"{sum(1 for s in self.stages if s['status'] == 'completed')}/{len(self.stages)}",
            'results': len(self.results),
            'response_time': format_duration(self.response_time),
        }
        if self.error:
            stats['error'] = self.error
        if self.fetch_error:
            stats['fetch_error'] = self.fetch_error
        stats.update(self.data)
        return stats


def run_step(
    name: str,
    tracker: ProgressTracker,
    driver: ProgressDriver,
    gate: CompletionGate,
) -> StepResult:
    """
    Drive one wizard step to a final gate state.

    The tracker display and the driver are both scoped to this call, so
    the stream/timers are released and the display torn down on every exit
    path. Analyzer errors raised by the driver end the step in error_state;
    anything else propagates.

    Args:
        name: Step name for logs
        tracker: Tracker owning the step's StageList
        driver: Driver advancing the stages
        gate: Completion gate routing the outcome

    Returns:
        StepResult with the gate's final state, results and timing
    """
    log_section_header(f"STEP: {name}")
    started = time.monotonic()

    with tracker, driver:
        try:
            gate.observe(driver, tracker.stages)
        except AnalyzerError as e:
            logger.error(f"{name} aborted: {e}")
            logger.debug("Full error details:", exc_info=True)

        result = StepResult(
            name=name,
            state=gate.state,
            outcome=driver.outcome,
            results=list(gate.results),
            error=gate.error,
            fetch_error=gate.fetch_error,
            payload=gate.completion_payload if gate.completion_payload is not None else driver.payload,
            response_time=time.monotonic() - started,
            stages=tracker.get_summary(),
        )
        if result.success:
            tracker.display_completion_summary(result.to_stats())

    log_step_summary(result)
    return result


def log_step_summary(result: StepResult) -> None:
    """
    Log standardized step summary.

    Example:
        # ======================================================================
        # STEP COMPLETE: Intent Phrases
        # ======================================================================
        # Stage 'Community Data Mining': completed (100%)
        # ...
        # Results: 42
        # Response time: 12.34s
    """
    status = "COMPLETE" if result.success else "FAILED"
    log_section_header(f"STEP {status}: {result.name}")

    for stage in result.stages:
        line = f"Stage '{stage['name']}': {stage['status']} ({stage['progress']}%)"
        if stage.get('error'):
            line += f" - {stage['error']}"
        logger.info(line)

    logger.info(f"Results: {len(result.results)}")
    logger.info(f"Response time: {format_duration(result.response_time)}")

    if result.error:
        logger.error(f"{result.name} failed: {result.error}")
    if result.fetch_error:
        logger.warning(f"Results could not be fetched: {result.fetch_error}")
