from __future__ import annotations

from dataclasses import dataclass

from intune_policy_export.data import (
    AssignmentRecord,
    GraphResponseValidator,
    GroupTarget,
    PolicyAssignment,
    PolicyCategory,
    UnknownTarget,
)
from intune_policy_export.graph.client import GraphClientFactory
from intune_policy_export.graph.requests import policy_assignments_request
from intune_policy_export.services.base import EventHook
from intune_policy_export.services.policies import CATEGORY_ENDPOINTS, CategoryEndpoint
from intune_policy_export.services.targets import TargetDescriptor, parse_target
from intune_policy_export.utils import get_logger


logger = get_logger(__name__)


@dataclass(slots=True)
class AssignmentFetchFailure:
    category: PolicyCategory
    policy_id: str
    message: str
    error: Exception


class AssignmentSource:
    """Collect and resolve the assignments of one policy category."""

    def __init__(
        self,
        client_factory: GraphClientFactory,
        descriptor: TargetDescriptor,
        *,
        category: PolicyCategory,
        endpoint: CategoryEndpoint | None = None,
    ) -> None:
        self._client_factory = client_factory
        self._descriptor = descriptor
        self._category = category
        self._endpoint = endpoint or CATEGORY_ENDPOINTS[category]
        self._validator = GraphResponseValidator(f"{self._endpoint.collection}_assignments")

        self.failures: EventHook[AssignmentFetchFailure] = EventHook()

    @property
    def category(self) -> PolicyCategory:
        return self._category

    async def collect(self, policy_id: str) -> list[AssignmentRecord]:
        """Return resolved assignments in listing order; empty on fetch failure."""

        request = policy_assignments_request(self._endpoint.collection, policy_id)
        try:
            raw_items = [
                item
                async for item in self._client_factory.iter_request(request, page_size=0)
            ]
        except Exception as exc:  # noqa: BLE001
            message = f"Failed to get {self._endpoint.label} assignments for {policy_id}"
            logger.warning(
                message,
                category=self._category.value,
                policy_id=policy_id,
                error=str(exc),
            )
            self.failures.emit(
                AssignmentFetchFailure(
                    category=self._category,
                    policy_id=policy_id,
                    message=message,
                    error=exc,
                ),
            )
            return []

        records: list[AssignmentRecord] = []
        for item in raw_items:
            assignment = self._validator.parse(PolicyAssignment, item)
            if assignment is None:
                continue
            records.append(await self._to_record(assignment))
        return records

    async def _to_record(self, assignment: PolicyAssignment) -> AssignmentRecord:
        target = parse_target(assignment.target)
        group_id = target.group_id if isinstance(target, (GroupTarget, UnknownTarget)) else None
        return AssignmentRecord(
            assignment_id=assignment.id,
            target_odata_type=target.odata_type,
            target_group_id=group_id,
            target_resolved=await self._descriptor.describe_parsed(target),
        )


def build_assignment_sources(
    client_factory: GraphClientFactory,
    descriptor: TargetDescriptor,
) -> dict[PolicyCategory, AssignmentSource]:
    """One source per category, all sharing the same descriptor and caches."""

    return {
        category: AssignmentSource(client_factory, descriptor, category=category)
        for category in PolicyCategory
    }


__all__ = [
    "AssignmentFetchFailure",
    "AssignmentSource",
    "build_assignment_sources",
]
