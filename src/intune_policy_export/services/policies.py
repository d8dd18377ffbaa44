from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from intune_policy_export.data import (
    AssignmentRecord,
    GraphPolicy,
    GraphResponseValidator,
    PolicyCategory,
    PolicyRecord,
    compliance_platform,
)
from intune_policy_export.graph.client import GraphClientFactory
from intune_policy_export.graph.requests import PolicyCollection, policy_list_request
from intune_policy_export.services.targets import is_active
from intune_policy_export.utils import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CategoryEndpoint:
    collection: PolicyCollection
    label: str


CATEGORY_ENDPOINTS: dict[PolicyCategory, CategoryEndpoint] = {
    PolicyCategory.DEVICE_CONFIGURATION: CategoryEndpoint(
        collection="deviceConfigurations",
        label="device configuration",
    ),
    PolicyCategory.SETTINGS_CATALOG: CategoryEndpoint(
        collection="configurationPolicies",
        label="settings catalog policy",
    ),
    PolicyCategory.COMPLIANCE: CategoryEndpoint(
        collection="deviceCompliancePolicies",
        label="compliance policy",
    ),
}


class PolicyListingService:
    """List the policies of each device-management category."""

    def __init__(self, client_factory: GraphClientFactory) -> None:
        self._client_factory = client_factory
        self._validator = GraphResponseValidator("policies")

    @property
    def invalid_count(self) -> int:
        return len(self._validator.issues())

    async def list_policies(self, category: PolicyCategory) -> list[GraphPolicy]:
        """Return every policy of ``category`` in listing order.

        Failures propagate: an unreadable category aborts the export.
        """

        endpoint = CATEGORY_ENDPOINTS[category]
        request = policy_list_request(endpoint.collection)
        policies: list[GraphPolicy] = []
        invalid_count = 0
        try:
            async for item in self._client_factory.iter_request(request):
                model = self._validator.parse(GraphPolicy, item)
                if model is None:
                    invalid_count += 1
                    continue
                policies.append(model)
        except Exception:
            logger.exception("Failed to list policies", category=category.value)
            raise

        if invalid_count:
            logger.warning(
                "Policy listing skipped invalid payloads",
                category=category.value,
                invalid=invalid_count,
            )
        logger.info("Listed policies", category=category.value, count=len(policies))
        return policies


def build_policy_record(
    category: PolicyCategory,
    policy: GraphPolicy,
    assignments: Sequence[AssignmentRecord],
) -> PolicyRecord:
    """Combine a listed policy with its resolved assignments."""

    platform_type = policy.platform_type
    if category is PolicyCategory.COMPLIANCE and not platform_type:
        platform_type = compliance_platform(policy.odata_type)

    return PolicyRecord(
        category=category,
        id=policy.id,
        display_name=policy.name,
        description=policy.description,
        version=policy.version,
        created_date_time=policy.created_date_time,
        last_modified_date_time=policy.last_modified_date_time,
        odata_type=policy.odata_type,
        technologies=policy.technologies,
        platform_type=platform_type,
        assignments=list(assignments),
        is_active=is_active(assignments),
    )


__all__ = [
    "CATEGORY_ENDPOINTS",
    "CategoryEndpoint",
    "PolicyListingService",
    "build_policy_record",
]
