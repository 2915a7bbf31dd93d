"""
Base Progress Driver

Cancellation token, driver outcomes and the ProgressDriver lifecycle shared by
the simulated and event-driven implementations.
"""

import logging
import threading
from abc import ABC, abstractmethod
from enum import Enum
from threading import RLock
from typing import Any, Callable, Optional

from domainanalyzer.progress.core.stage import StageList, StageStatus

logger = logging.getLogger(__name__)


class DriverOutcome(Enum):
    """How a driver run ended."""
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


class CancellationToken:
    """
    Cooperative cancellation shared between a driver and its owner.

    Drivers apply every StageList mutation through ``apply()``, which holds the
    same lock as ``cancel()``. Once ``cancel()`` has returned, no further
    mutation goes through.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = RLock()

    def cancel(self) -> None:
        with self._lock:
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; True if cancelled meanwhile."""
        if timeout <= 0:
            return self.cancelled
        return self._event.wait(timeout)

    def apply(self, fn: Callable[..., Any], *args, **kwargs) -> bool:
        """Run ``fn`` unless cancelled; False if it was skipped."""
        with self._lock:
            if self._event.is_set():
                return False
            fn(*args, **kwargs)
            return True


class ProgressDriver(ABC):
    """
    Advances a StageList until it completes, fails, times out or is cancelled.

    Run it synchronously with ``run()`` or on one worker thread with
    ``start()``/``join()``. Use the driver as a context manager to guarantee
    that timers and streams are released on every exit path:

        with SimulatedDriver() as driver:
            driver.run(stages)
    """

    def __init__(self, token: Optional[CancellationToken] = None) -> None:
        self.token = token or CancellationToken()
        self.outcome: Optional[DriverOutcome] = None
        self.error: Optional[str] = None
        self.payload: Any = None
        self._thread: Optional[threading.Thread] = None
        self._exception: Optional[BaseException] = None
        self._released = False

    @abstractmethod
    def _drive(self, stages: StageList) -> DriverOutcome:
        """Advance ``stages``; implemented per mode."""

    def _release(self) -> None:
        """Free timers/streams held by the driver. Default no-op."""

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        try:
            self._release()
        except Exception as e:
            logger.warning(f"Error releasing {type(self).__name__}: {e}")

    def run(self, stages: StageList) -> DriverOutcome:
        """Drive ``stages`` to an outcome in the calling thread."""
        name = type(self).__name__
        logger.debug(f"{name} starting on {len(stages)} stage(s)")
        try:
            outcome = self._drive(stages)
        except Exception as e:
            self.error = self.error or str(e)
            self.outcome = DriverOutcome.FAILED
            logger.error(f"{name} failed: {e}")
            raise
        finally:
            self.release()

        if self.token.cancelled and outcome != DriverOutcome.COMPLETED:
            outcome = DriverOutcome.CANCELLED
        self.outcome = outcome
        logger.info(f"{name} finished: {outcome.value}")
        return outcome

    def start(self, stages: StageList) -> threading.Thread:
        """Run the driver on a daemon worker thread."""
        if self._thread is not None:
            raise RuntimeError("Driver already started")

        def target() -> None:
            try:
                self.run(stages)
            except Exception as e:
                self._exception = e

        self._thread = threading.Thread(
            target=target, name=f"{type(self).__name__}-worker", daemon=True
        )
        self._thread.start()
        return self._thread

    def join(self, timeout: Optional[float] = None) -> Optional[DriverOutcome]:
        """Wait for a started driver; re-raise anything the run raised."""
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                return None
        if self._exception is not None:
            exc, self._exception = self._exception, None
            raise exc
        return self.outcome

    def cancel(self) -> None:
        """Stop scheduling work; no StageList mutation happens after this returns."""
        self.token.cancel()
        logger.debug(f"{type(self).__name__} cancelled")

    def _set(self, stages: StageList, index: int, **fields) -> bool:
        """Apply one stage update unless cancelled."""
        return self.token.apply(stages.set_stage, index, **fields)

    def _fail_current(self, stages: StageList, error: str) -> None:
        """Mark the running stage (or the first unfinished one) failed."""
        index = stages.current_index()
        if index is None:
            index = stages.first_unfinished_index()
        if index is not None:
            self._set(stages, index, status=StageStatus.FAILED, error=error)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cancel()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
        self.release()
