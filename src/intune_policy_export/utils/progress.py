from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable

from intune_policy_export.utils.logging import get_logger


logger = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class ProgressUpdate:
    """Where the export stands within one policy category."""

    total: int | None
    completed: int
    failed: int
    current: str | None = None

    @property
    def processed(self) -> int:
        return self.completed + self.failed

    @property
    def remaining(self) -> int | None:
        if self.total is None:
            return None
        return max(self.total - self.processed, 0)

    @property
    def percent_complete(self) -> float | None:
        if not self.total:
            return None
        return min(self.processed / self.total * 100, 100.0)


ProgressCallback = Callable[[ProgressUpdate], None]


class ProgressTracker:
    """Accumulate per-policy outcomes and publish each new `ProgressUpdate`.

    A callback that raises is logged and otherwise ignored.
    """

    __slots__ = ("_state", "_callback")

    def __init__(self, callback: ProgressCallback | None = None) -> None:
        self._state = ProgressUpdate(total=None, completed=0, failed=0)
        self._callback = callback

    def start(self, *, total: int | None = None, current: str | None = None) -> ProgressUpdate:
        return self._publish(ProgressUpdate(total=total, completed=0, failed=0, current=current))

    def succeeded(self, *, count: int = 1, current: str | None = None) -> ProgressUpdate:
        return self._publish(
            replace(
                self._state,
                completed=self._state.completed + count,
                current=current or self._state.current,
            )
        )

    def failed(self, *, count: int = 1, current: str | None = None) -> ProgressUpdate:
        return self._publish(
            replace(
                self._state,
                failed=self._state.failed + count,
                current=current or self._state.current,
            )
        )

    def finish(self) -> ProgressUpdate:
        return self._publish(self._state)

    def _publish(self, state: ProgressUpdate) -> ProgressUpdate:
        self._state = state
        if self._callback is not None:
            try:
                self._callback(state)
            except Exception:  # pragma: no cover - reporting must not stop the export
                logger.exception("Progress callback failed")
        return state


def log_progress(update: ProgressUpdate) -> None:
    logger.info(
        "Export progress",
        current=update.current,
        completed=update.completed,
        failed=update.failed,
        total=update.total,
    )


__all__ = [
    "ProgressUpdate",
    "ProgressTracker",
    "ProgressCallback",
    "log_progress",
]
