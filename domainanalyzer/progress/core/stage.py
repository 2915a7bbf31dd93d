"""
Core Progress Stage Module

Defines the stage status enumeration, the immutable Stage snapshot and the
index-addressed StageList that every progress driver mutates.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from threading import RLock
from typing import Callable, Dict, Iterator, List, Optional, Sequence

logger = logging.getLogger(__name__)

PROGRESS_MIN = 0
PROGRESS_MAX = 100


class StageStatus(Enum):
    """Enumeration of progress stage statuses."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (StageStatus.COMPLETED, StageStatus.FAILED)


@dataclass(frozen=True)
class Stage:
    """Snapshot of one named unit of work."""
    name: str
    status: StageStatus = StageStatus.PENDING
    progress: int = 0
    description: str = ""
    error: Optional[str] = None


StageCallback = Callable[[int, Stage], None]

_UNSET = object()


def _clamp(value: int) -> int:
    return max(PROGRESS_MIN, min(PROGRESS_MAX, int(value)))


class StageList:
    """
    Ordered, fixed-size collection of stages with atomic index-addressed updates.

    The order is set by the caller at construction and never changes. Updates
    are applied under a re-entrant lock, and registered callbacks receive
    ``(index, stage)`` after every update that changed something.

    Progress within a stage never goes backwards unless the stage is being
    reset (an explicit ``PENDING`` status, or a fresh ``PENDING -> RUNNING``
    start). A completed or failed stage does not fall back to ``RUNNING``.
    """

    def __init__(
        self,
        stage_names: Sequence[str],
        descriptions: Optional[Sequence[str]] = None,
        max_callback_errors: Optional[int] = None,
    ) -> None:
        """
        Initialize a stage list.

        Args:
            stage_names: Ordered display labels
            descriptions: Optional default description for each stage
            max_callback_errors: Failures tolerated per callback before it is
                disabled (defaults to the global progress config)
        """
        descriptions = list(descriptions or [])
        self._lock = RLock()
        self._stages: List[Stage] = [
            Stage(
                name=name,
                description=descriptions[i] if i < len(descriptions) else "",
            )
            for i, name in enumerate(stage_names)
        ]
        self._callbacks: List[StageCallback] = []
        self._callback_errors: Dict[StageCallback, int] = {}
        self._max_callback_errors = max_callback_errors

    @classmethod
    def initialize(cls, stage_names: Sequence[str], **kwargs) -> "StageList":
        """Create a list where every stage is pending at 0%."""
        return cls(stage_names, **kwargs)

    def __len__(self) -> int:
        return len(self._stages)

    def __getitem__(self, index: int) -> Stage:
        with self._lock:
            return self._stages[index]

    def __iter__(self) -> Iterator[Stage]:
        return iter(self.snapshot())

    def snapshot(self) -> List[Stage]:
        """Return a copy of the current stage sequence."""
        with self._lock:
            return list(self._stages)

    @property
    def names(self) -> List[str]:
        return [stage.name for stage in self._stages]

    def add_callback(self, callback: StageCallback) -> None:
        """
        Add callback invoked after each effective update.

        Args:
            callback: Function that accepts (index, stage) arguments
        """
        with self._lock:
            if callback not in self._callbacks:
                self._callbacks.append(callback)
                self._callback_errors[callback] = 0

    def remove_callback(self, callback: StageCallback) -> None:
        """Remove previously added callback."""
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)
            self._callback_errors.pop(callback, None)

    def set_stage(
        self,
        index: int,
        status: Optional[StageStatus] = None,
        progress: Optional[int] = None,
        description: Optional[str] = None,
        error=_UNSET,
    ) -> bool:
        """
        Replace the given fields of the stage at ``index``.

        Out-of-range indices are ignored; callers guarantee valid indices
        through their phase tables.

        Returns:
            True if the stage changed
        """
        with self._lock:
            if not 0 <= index < len(self._stages):
                logger.debug(f"Ignoring update for out-of-range stage index {index}")
                return False

            current = self._stages[index]
            updated = self._merge(current, status, progress, description, error)
            if updated == current:
                return False

            self._stages[index] = updated
            callbacks = list(self._callbacks)

        self._notify_callbacks(callbacks, index, updated)
        return True

    def _merge(
        self,
        current: Stage,
        status: Optional[StageStatus],
        progress: Optional[int],
        description: Optional[str],
        error,
    ) -> Stage:
        new_status = current.status if status is None else status

        if current.status.is_terminal and new_status == StageStatus.RUNNING:
            logger.debug(
                f"Stage '{current.name}' is {current.status.value}; "
                f"ignoring move back to running"
            )
            new_status = current.status

        is_reset = status == StageStatus.PENDING or (
            current.status == StageStatus.PENDING and new_status == StageStatus.RUNNING
        )

        new_progress = current.progress
        if progress is not None:
            new_progress = _clamp(progress)
            if not is_reset:
                new_progress = max(new_progress, current.progress)
        elif status == StageStatus.PENDING:
            new_progress = PROGRESS_MIN

        changes = {"status": new_status, "progress": new_progress}
        if description is not None:
            changes["description"] = description
        if error is not _UNSET:
            changes["error"] = error
        elif new_status != StageStatus.FAILED and current.error is not None:
            changes["error"] = None
        return replace(current, **changes)

    def _notify_callbacks(self, callbacks: List[StageCallback], index: int, stage: Stage) -> None:
        """Notify callbacks outside the lock, disabling ones that keep failing."""
        from domainanalyzer.progress.config import get_config
        config = get_config()
        limit = self._max_callback_errors or config.max_callback_errors

        for callback in callbacks:
            try:
                callback(index, stage)
                with self._lock:
                    if callback in self._callback_errors:
                        self._callback_errors[callback] = 0
            except Exception as e:
                with self._lock:
                    count = self._callback_errors.get(callback, 0) + 1
                    self._callback_errors[callback] = count

                    if config.log_callback_errors:
                        logger.warning(
                            f"Callback error for stage {index} ({stage.name}): {e}. "
                            f"Error count: {count}"
                        )

                    if count >= limit:
                        logger.error(
                            f"Disabling stage callback due to too many errors ({count})"
                        )
                        self.remove_callback(callback)

    def all_completed(self) -> bool:
        """True iff every stage is completed."""
        with self._lock:
            return all(stage.status == StageStatus.COMPLETED for stage in self._stages)

    def any_failed(self) -> bool:
        """True iff any stage has failed."""
        with self._lock:
            return any(stage.status == StageStatus.FAILED for stage in self._stages)

    def active_indices(self) -> List[int]:
        """Indices of every running stage, in order."""
        with self._lock:
            return [i for i, stage in enumerate(self._stages) if stage.status == StageStatus.RUNNING]

    def current_index(self) -> Optional[int]:
        """Lowest running index, used as the highlighted stage."""
        active = self.active_indices()
        return active[0] if active else None

    def first_unfinished_index(self) -> Optional[int]:
        """Lowest index whose stage is not yet terminal."""
        with self._lock:
            for i, stage in enumerate(self._stages):
                if not stage.status.is_terminal:
                    return i
            return None

    def reset(self) -> None:
        """Reset every stage to pending at 0%."""
        for index in range(len(self._stages)):
            self.set_stage(index, status=StageStatus.PENDING, progress=0, error=None)

    def overall_progress(self) -> int:
        """Average progress across stages, 0-100."""
        with self._lock:
            if not self._stages:
                return PROGRESS_MAX
            return sum(stage.progress for stage in self._stages) // len(self._stages)

    def __str__(self) -> str:
        parts = [f"{s.name} ({s.status.value} {s.progress}%)" for s in self.snapshot()]
        return " | ".join(parts)
