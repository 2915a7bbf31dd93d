"""
Simulated Progress Driver

Advances stages one after another on a local timer, optionally gating each
stage's completion on a real check (domain onboarding).
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from domainanalyzer.exceptions import AnalyzerError
from domainanalyzer.progress.core.stage import PROGRESS_MAX, Stage, StageList, StageStatus
from domainanalyzer.progress.drivers.base import CancellationToken, DriverOutcome, ProgressDriver

logger = logging.getLogger(__name__)


@dataclass
class GateResult:
    """Result of the check that guards one stage's completion."""
    success: bool
    error: Optional[str] = None
    data: Any = None

    @classmethod
    def from_payload(cls, payload: Any) -> "GateResult":
        """Build from a backend ``{"success": ..., "error": ...}`` body."""
        if not isinstance(payload, Mapping):
            return cls(success=False, error=f"Unexpected response: {payload!r}", data=payload)
        success = bool(payload.get("success"))
        error = None if success else (payload.get("error") or "Check failed")
        return cls(success=success, error=error, data=dict(payload))


StageGate = Callable[[Stage], GateResult]
GateSpec = Union[Sequence[Optional[StageGate]], Mapping[int, StageGate]]


class SimulatedDriver(ProgressDriver):
    """
    Sequential timer-driven driver.

    For each stage in order: mark it running at 0%, tick progress by ``step``
    every ``step_delay`` seconds until 100%, run the stage's gate (if any),
    mark it completed and pause ``settle_delay`` seconds. Exactly one stage is
    running at any time. A gate that reports failure marks its stage failed
    and halts the sequence, leaving later stages pending.
    """

    def __init__(
        self,
        step: Optional[int] = None,
        step_delay: Optional[float] = None,
        settle_delay: Optional[float] = None,
        gates: Optional[GateSpec] = None,
        token: Optional[CancellationToken] = None,
    ) -> None:
        """
        Initialize simulated driver; unset timings come from the progress config.

        Args:
            step: Progress increment per tick
            step_delay: Seconds between ticks
            settle_delay: Seconds to pause after each completed stage
            gates: Per-stage completion checks, by position or index mapping
            token: Shared cancellation token
        """
        super().__init__(token)
        from domainanalyzer.progress.config import get_config
        config = get_config()

        self.step = config.step if step is None else step
        self.step_delay = config.step_delay if step_delay is None else step_delay
        self.settle_delay = config.settle_delay if settle_delay is None else settle_delay
        if self.step <= 0:
            raise ValueError(f"step must be positive, got {self.step}")

        if gates is None:
            self._gates: Dict[int, StageGate] = {}
        elif isinstance(gates, Mapping):
            self._gates = dict(gates)
        else:
            self._gates = {i: gate for i, gate in enumerate(gates) if gate is not None}

        self.gate_results: Dict[int, GateResult] = {}
        self.failed_index: Optional[int] = None

    def _drive(self, stages: StageList) -> DriverOutcome:
        for index in range(len(stages)):
            outcome = self._advance_stage(stages, index)
            if outcome is not None:
                return outcome

        return DriverOutcome.COMPLETED

    def _advance_stage(self, stages: StageList, index: int) -> Optional[DriverOutcome]:
        """Run one stage; returns an outcome only when the sequence must stop."""
        if not self._set(stages, index, status=StageStatus.RUNNING, progress=0):
            return DriverOutcome.CANCELLED

        progress = 0
        while progress < PROGRESS_MAX:
            progress = min(PROGRESS_MAX, progress + self.step)
            if not self._set(stages, index, progress=progress):
                return DriverOutcome.CANCELLED
            if self.token.wait(self.step_delay):
                return DriverOutcome.CANCELLED

        gate = self._gates.get(index)
        if gate is not None:
            result = self._run_gate(gate, stages, index)
            if self.token.cancelled:
                return DriverOutcome.CANCELLED
            self.gate_results[index] = result
            if not result.success:
                logger.error(f"Stage '{stages[index].name}' failed: {result.error}")
                self._set(
                    stages, index,
                    status=StageStatus.FAILED, progress=PROGRESS_MAX, error=result.error,
                )
                self.error = result.error
                self.failed_index = index
                return DriverOutcome.FAILED

        if not self._set(stages, index, status=StageStatus.COMPLETED, progress=PROGRESS_MAX):
            return DriverOutcome.CANCELLED
        logger.debug(f"Stage {index} '{stages[index].name}' completed")

        if self.token.wait(self.settle_delay):
            return DriverOutcome.CANCELLED
        return None

    def _run_gate(self, gate: StageGate, stages: StageList, index: int) -> GateResult:
        stage = stages[index]
        try:
            result = gate(stage)
        except AnalyzerError as e:
            return GateResult(success=False, error=str(e))
        except Exception as e:
            self._set(stages, index, status=StageStatus.FAILED, error=str(e))
            self.failed_index = index
            raise

        if not isinstance(result, GateResult):
            raise TypeError(f"Gate for stage '{stage.name}' returned {type(result).__name__}")
        return result
