from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Type, TypeVar

from pydantic import ValidationError

from intune_policy_export.data.models import GraphBaseModel
from intune_policy_export.utils import get_logger


logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=GraphBaseModel)


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    resource: str
    identifier: str | None
    fields: tuple[str, ...]


def _error_locations(exc: ValidationError) -> tuple[str, ...]:
    return tuple(".".join(map(str, error["loc"])) for error in exc.errors())


class GraphResponseValidator:
    """Parse Graph items into models, skipping the ones that do not fit.

    Each rejected item is logged as a warning and kept as a `ValidationIssue`
    so callers can report how many were dropped.
    """

    def __init__(self, resource: str) -> None:
        self.resource = resource
        self._issues: list[ValidationIssue] = []

    def parse(self, model: Type[ModelT], payload: Mapping[str, Any]) -> ModelT | None:
        try:
            return model.from_graph(payload)
        except ValidationError as exc:
            raw_id = payload.get("id")
            issue = ValidationIssue(
                resource=self.resource,
                identifier=None if raw_id is None else str(raw_id),
                fields=_error_locations(exc),
            )
            self._issues.append(issue)
            logger.warning(
                "Skipping item that does not match the expected shape",
                resource=self.resource,
                identifier=issue.identifier,
                fields=", ".join(issue.fields) or "unknown",
            )
            return None

    def issues(self) -> list[ValidationIssue]:
        return list(self._issues)


__all__ = ["GraphResponseValidator", "ValidationIssue"]
