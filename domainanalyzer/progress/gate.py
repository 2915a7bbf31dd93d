"""
Completion Gate

Moves one wizard step from loading to results once its driver finishes,
performing a single results fetch on success.
"""

import logging
import time
from enum import Enum
from threading import RLock
from typing import Any, Callable, List, Optional

from domainanalyzer.exceptions import GateStateError
from domainanalyzer.progress.core.stage import StageList
from domainanalyzer.progress.drivers.base import CancellationToken, DriverOutcome, ProgressDriver

logger = logging.getLogger(__name__)


class GateState(Enum):
    """Per-step view state."""
    IDLE = "idle"
    LOADING = "loading"
    COMPLETED = "completed"
    FETCHING_RESULTS = "fetching_results"
    RESULTS = "results"
    ERROR_STATE = "error_state"


_TRANSITIONS = {
    GateState.IDLE: {GateState.LOADING},
    GateState.LOADING: {GateState.COMPLETED, GateState.ERROR_STATE},
    GateState.COMPLETED: {GateState.FETCHING_RESULTS, GateState.RESULTS},
    GateState.FETCHING_RESULTS: {GateState.RESULTS},
    GateState.RESULTS: set(),
    GateState.ERROR_STATE: set(),
}

_LOADING_STATES = (GateState.LOADING, GateState.COMPLETED, GateState.FETCHING_RESULTS)

ResultsFetcher = Callable[[Any], Optional[List[Any]]]


class CompletionGate:
    """
    One-directional state machine for a wizard step:

        idle -> loading -> completed -> fetching_results -> results
                        \\-> error_state

    A completion signal triggers exactly one call of ``fetch_results`` (when
    one is configured). A failing fetch is logged and the step still lands in
    ``results`` with an empty dataset. An error signal lands in
    ``error_state`` with an empty dataset and never fetches. Signals arriving
    in any other state are ignored.
    """

    def __init__(
        self,
        fetch_results: Optional[ResultsFetcher] = None,
        back_delay: Optional[float] = None,
    ) -> None:
        """
        Initialize completion gate.

        Args:
            fetch_results: Callable receiving the completion payload and
                returning the step's result data
            back_delay: Seconds of "retrieving saved data" delay on reset
                (defaults to the progress config)
        """
        from domainanalyzer.progress.config import get_config

        self._fetch_results = fetch_results
        self.back_delay = get_config().back_delay if back_delay is None else back_delay
        self._lock = RLock()
        self._state = GateState.IDLE
        self.results: List[Any] = []
        self.error: Optional[str] = None
        self.fetch_error: Optional[str] = None
        self.completion_payload: Any = None
        self.fetch_count = 0

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._state in _LOADING_STATES

    @property
    def has_results(self) -> bool:
        return self._state == GateState.RESULTS

    def _transition(self, new_state: GateState) -> None:
        with self._lock:
            if new_state not in _TRANSITIONS[self._state]:
                raise GateStateError(
                    f"Illegal gate transition {self._state.value} -> {new_state.value}"
                )
            logger.debug(f"Gate {self._state.value} -> {new_state.value}")
            self._state = new_state

    def begin(self) -> None:
        """Enter the loading state."""
        self._transition(GateState.LOADING)

    def signal_complete(self, payload: Any = None) -> bool:
        """
        Handle the completion signal.

        Returns:
            True if this call performed the completion, False if ignored
        """
        with self._lock:
            if self._state != GateState.LOADING:
                logger.warning(f"Ignoring completion signal in state {self._state.value}")
                return False
            self._transition(GateState.COMPLETED)
            self.completion_payload = payload

            if self._fetch_results is None:
                self._transition(GateState.RESULTS)
                return True
            self._transition(GateState.FETCHING_RESULTS)

        # Fetch outside the lock; the state change above makes repeats no-ops
        results: List[Any] = []
        try:
            self.fetch_count += 1
            results = list(self._fetch_results(payload) or [])
            logger.info(f"Fetched {len(results)} result item(s)")
        except Exception as e:
            self.fetch_error = str(e)
            logger.error(f"Failed to fetch results: {e}")

        with self._lock:
            self.results = results
            self._transition(GateState.RESULTS)
        return True

    def signal_error(self, error: Any = None) -> bool:
        """
        Handle a failure signal; result data is never fetched.

        Returns:
            True if the gate moved to error_state, False if ignored
        """
        with self._lock:
            if self._state != GateState.LOADING:
                logger.warning(f"Ignoring error signal in state {self._state.value}")
                return False
            self.error = _describe(error)
            self.results = []
            self._transition(GateState.ERROR_STATE)
        logger.error(f"Step failed: {self.error}")
        return True

    def observe(self, driver: ProgressDriver, stages: StageList) -> GateState:
        """
        Run ``driver`` over ``stages`` and route its outcome.

        Returns:
            Final gate state
        """
        if self._state == GateState.IDLE:
            self.begin()

        try:
            outcome = driver.run(stages)
        except Exception as e:
            self.signal_error(str(e))
            raise

        if outcome == DriverOutcome.COMPLETED and stages.all_completed():
            self.signal_complete(driver.payload)
        elif outcome == DriverOutcome.CANCELLED:
            self.signal_error("Cancelled")
        else:
            self.signal_error(driver.error or f"Driver finished: {outcome.value}")
        return self._state

    def reset(self, stages: Optional[StageList] = None, token: Optional[CancellationToken] = None) -> None:
        """
        Go back: wait the "retrieving saved data" delay, then return to idle.

        Args:
            stages: StageList to discard (reset to pending)
            token: Cancels the delay early
        """
        if self.back_delay > 0:
            if token is not None:
                token.wait(self.back_delay)
            else:
                time.sleep(self.back_delay)

        with self._lock:
            logger.debug(f"Gate reset from {self._state.value}")
            self._state = GateState.IDLE
            self.results = []
            self.error = None
            self.fetch_error = None
            self.completion_payload = None
            self.fetch_count = 0
        if stages is not None:
            stages.reset()


def _describe(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("error") or error.get("message") or "Unknown error")
    if error is None:
        return "Unknown error"
    return str(error)
