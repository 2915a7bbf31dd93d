"""
Event-Driven Progress Driver

Maps server-pushed progress events onto stage indices through a fixed phase
table and reports completion or failure of the stream.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from domainanalyzer.api.sse import DEFAULT_EVENT, ServerSentEvent
from domainanalyzer.exceptions import StreamError, StreamTimeoutError
from domainanalyzer.progress.core.stage import PROGRESS_MAX, StageList, StageStatus
from domainanalyzer.progress.drivers.base import CancellationToken, DriverOutcome, ProgressDriver

logger = logging.getLogger(__name__)

PROGRESS_EVENT = "progress"
COMPLETE_EVENT = "complete"
ERROR_EVENT = "error"


class PhasePolicy(Enum):
    """
    How phase events relate to each other.

    CONCURRENT: each phase updates only its own stage, so several stages may
        be running at once; the display highlights the lowest running one.
    SEQUENTIAL: phases run in table order. A phase event closes every
        earlier unfinished stage and a phase reaching 100% starts the next
        stage. Late events for a finished phase are ignored.
    """
    CONCURRENT = "concurrent"
    SEQUENTIAL = "sequential"


@dataclass(frozen=True)
class ProgressEvent:
    """Decoded ``progress`` event payload."""
    phase: Optional[str] = None
    progress: Optional[int] = None
    message: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ProgressEvent":
        progress = payload.get("progress")
        try:
            progress = None if progress is None else int(progress)
        except (TypeError, ValueError):
            logger.debug(f"Ignoring non-numeric progress value: {progress!r}")
            progress = None
        return cls(
            phase=payload.get("phase") or None,
            progress=progress,
            message=payload.get("message"),
        )


EventHandler = Callable[[Any], None]


class EventDrivenDriver(ProgressDriver):
    """
    Driver fed by a stream of server-sent events.

    ``progress`` events are mapped onto stages, ``complete`` ends the run as
    completed and ``error`` ends it as failed. Extra named events (e.g.
    streamed result items) go to ``handlers``. Events are applied in arrival
    order without reordering or deduplication; stage progress is still kept
    monotonic by the StageList.
    """

    def __init__(
        self,
        events: Optional[Iterable[ServerSentEvent]] = None,
        phase_map: Optional[Mapping[str, int]] = None,
        policy: PhasePolicy = PhasePolicy.CONCURRENT,
        handlers: Optional[Mapping[str, EventHandler]] = None,
        token: Optional[CancellationToken] = None,
    ) -> None:
        """
        Initialize event-driven driver.

        Args:
            events: Iterable of events, usually an open stream
            phase_map: Phase identifier to stage index; defaults to stage names
            policy: Phase relationship policy
            handlers: Callbacks for additional named events
            token: Shared cancellation token
        """
        super().__init__(token)
        self._events = events
        self._phase_map: Optional[Dict[str, int]] = dict(phase_map) if phase_map is not None else None
        self.policy = policy
        self._handlers: Dict[str, EventHandler] = dict(handlers or {})
        self._stages: Optional[StageList] = None
        self._finished: Optional[DriverOutcome] = None

    def bind(self, stages: StageList) -> None:
        """Attach the StageList that incoming events mutate."""
        self._stages = stages
        if self._phase_map is None:
            self._phase_map = {name: index for index, name in enumerate(stages.names)}

    @property
    def phase_map(self) -> Dict[str, int]:
        return dict(self._phase_map or {})

    def map_phase_to_index(self, phase: Optional[str]) -> Optional[int]:
        """Resolve a phase identifier; None when the phase is unknown."""
        if phase is None or self._phase_map is None:
            return None
        return self._phase_map.get(phase)

    def _require_stages(self) -> StageList:
        if self._stages is None:
            raise RuntimeError("EventDrivenDriver is not bound to a StageList")
        return self._stages

    def on_event(self, event: ProgressEvent) -> bool:
        """
        Apply one progress event.

        Returns:
            True if the event addressed a stage
        """
        stages = self._require_stages()

        if event.phase is None:
            return self._apply_phaseless(stages, event)

        index = self.map_phase_to_index(event.phase)
        if index is None:
            logger.debug(f"Dropping progress for unknown phase '{event.phase}'")
            return False
        if event.progress is None:
            if event.message is not None:
                self._set(stages, index, description=event.message)
            return True

        if self.policy == PhasePolicy.SEQUENTIAL:
            self._apply_sequential(stages, index, event)
        else:
            status = StageStatus.COMPLETED if event.progress >= PROGRESS_MAX else StageStatus.RUNNING
            self._set(stages, index, status=status, progress=event.progress, description=event.message)
        return True

    def _apply_phaseless(self, stages: StageList, event: ProgressEvent) -> bool:
        """Progress without a phase advances the current running stage."""
        if event.progress is None:
            return False
        index = stages.current_index()
        if index is None:
            index = stages.first_unfinished_index()
            if index is None:
                return False
            return self._set(stages, index, status=StageStatus.RUNNING, progress=event.progress,
                             description=event.message)
        return self._set(stages, index, progress=event.progress, description=event.message)

    def _apply_sequential(self, stages: StageList, index: int, event: ProgressEvent) -> None:
        if stages[index].status.is_terminal:
            logger.debug(f"Ignoring late progress for finished stage '{stages[index].name}'")
            return

        for earlier in range(index):
            if not stages[earlier].status.is_terminal:
                self._set(stages, earlier, status=StageStatus.COMPLETED, progress=PROGRESS_MAX)

        if event.progress >= PROGRESS_MAX:
            self._set(stages, index, status=StageStatus.COMPLETED, progress=PROGRESS_MAX,
                      description=event.message)
            following = index + 1
            if following < len(stages) and stages[following].status == StageStatus.PENDING:
                self._set(stages, following, status=StageStatus.RUNNING, progress=0)
            return

        self._set(stages, index, status=StageStatus.RUNNING, progress=event.progress,
                  description=event.message)

    def on_complete(self, payload: Any = None) -> None:
        """Stream finished successfully; every unfailed stage is closed at 100%."""
        stages = self._require_stages()
        for index, stage in enumerate(stages.snapshot()):
            if stage.status != StageStatus.FAILED:
                self._set(stages, index, status=StageStatus.COMPLETED, progress=PROGRESS_MAX)
        self.payload = payload
        self._finished = DriverOutcome.COMPLETED
        logger.info("Stream reported completion")

    def on_error(self, payload: Any = None) -> None:
        """Stream reported an error: stop reading and fail the current stage."""
        stages = self._require_stages()
        self.error = _error_message(payload)
        self.payload = payload
        self._fail_current(stages, self.error)
        self._finished = DriverOutcome.FAILED
        logger.error(f"Stream reported error: {self.error}")
        self.release()

    def dispatch(self, sse: ServerSentEvent) -> Optional[DriverOutcome]:
        """
        Route one stream event.

        Data-only streams carry the event type inside the JSON body
        (``{"type": "progress", ...}``); those are routed by that type.

        Returns:
            The outcome once a terminal event has been handled, else None
        """
        try:
            payload = sse.json()
        except ValueError as e:
            logger.warning(f"Error parsing SSE data for '{sse.event}' event: {e}")
            return None

        name = sse.event
        if name == DEFAULT_EVENT and isinstance(payload, dict) and payload.get("type"):
            name = payload["type"]

        if name == PROGRESS_EVENT:
            if isinstance(payload, dict):
                self.on_event(ProgressEvent.from_payload(payload))
        elif name == COMPLETE_EVENT:
            self.on_complete(payload)
        elif name == ERROR_EVENT:
            self.on_error(payload)
        elif name in self._handlers:
            if not self.token.cancelled:
                self._handlers[name](payload)
        else:
            logger.debug(f"Ignoring '{name}' event")

        return self._finished

    def _drive(self, stages: StageList) -> DriverOutcome:
        self.bind(stages)
        if self._events is None:
            raise ValueError("EventDrivenDriver needs an event source to run")

        try:
            for sse in self._events:
                if self.token.cancelled:
                    return DriverOutcome.CANCELLED
                outcome = self.dispatch(sse)
                if outcome is not None:
                    return outcome
        except StreamTimeoutError as e:
            if self.token.cancelled:
                return DriverOutcome.CANCELLED
            self.error = str(e)
            self._fail_current(stages, self.error)
            logger.error(f"Stream timed out: {e}")
            return DriverOutcome.TIMED_OUT
        except StreamError as e:
            if self.token.cancelled:
                return DriverOutcome.CANCELLED
            self.error = str(e)
            self._fail_current(stages, self.error)
            logger.error(f"Stream failed: {e}")
            return DriverOutcome.FAILED

        if self.token.cancelled:
            return DriverOutcome.CANCELLED

        self.error = "Stream closed before completion"
        self._fail_current(stages, self.error)
        logger.error(self.error)
        return DriverOutcome.FAILED

    def cancel(self) -> None:
        """Cancel and close the stream so a blocked read returns."""
        super().cancel()
        self.release()

    def _release(self) -> None:
        close = getattr(self._events, "close", None)
        if callable(close):
            close()
            logger.debug("Closed event stream")


def _error_message(payload: Any) -> str:
    if isinstance(payload, dict):
        return str(payload.get("error") or payload.get("message") or "Stream reported an error")
    if payload:
        return str(payload)
    return "Stream reported an error"
