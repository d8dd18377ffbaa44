from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from intune_policy_export.utils import get_logger


logger = get_logger(__name__)

T_co = TypeVar("T_co", covariant=True)


class EventHook(Generic[T_co]):
    """Fan a service event out to its listeners.

    A listener that raises is logged; the remaining listeners still run.
    """

    def __init__(self) -> None:
        self._listeners: list[Callable[[T_co], None]] = []

    def subscribe(self, listener: Callable[[T_co], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, payload: T_co) -> None:
        for listener in tuple(self._listeners):
            try:
                listener(payload)
            except Exception:  # pragma: no cover - listeners must not abort the export
                logger.exception("Event listener failed", event=type(payload).__name__)


@dataclass(frozen=True, slots=True)
class LookupResult:
    """Outcome of resolving an identifier to a display name.

    ``value`` is always usable: the display name on success, otherwise the
    identifier itself.
    """

    key: str
    value: str
    resolved: bool
    error: Exception | None = None

    @classmethod
    def success(cls, key: str, value: str) -> "LookupResult":
        return cls(key=key, value=value, resolved=True)

    @classmethod
    def fallback(cls, key: str, error: Exception | None = None) -> "LookupResult":
        return cls(key=key, value=key, resolved=False, error=error)


__all__ = ["EventHook", "LookupResult"]
