from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal


GraphMethod = Literal["GET"]

PolicyCollection = Literal[
    "deviceConfigurations",
    "configurationPolicies",
    "deviceCompliancePolicies",
]


@dataclass(slots=True)
class GraphRequest:
    """Structured representation of a Microsoft Graph request.

    ``url`` is relative to the API root; the client factory picks the API
    version for it.
    """

    method: GraphMethod
    url: str
    headers: dict[str, str] | None = None
    params: dict[str, Any] | None = None


def policy_list_request(
    collection: PolicyCollection,
    *,
    params: dict[str, Any] | None = None,
) -> GraphRequest:
    """List every policy in one device-management collection."""

    return GraphRequest(method="GET", url=f"/deviceManagement/{collection}", params=params)


def policy_assignments_request(
    collection: PolicyCollection,
    policy_id: str,
) -> GraphRequest:
    """Fetch the assignments collection for a single policy."""

    return GraphRequest(
        method="GET",
        url=f"/deviceManagement/{collection}/{policy_id}/assignments",
    )


def group_request(group_id: str) -> GraphRequest:
    return GraphRequest(
        method="GET",
        url=f"/groups/{group_id}",
        params={"$select": "id,displayName"},
    )


def assignment_filter_request(filter_id: str) -> GraphRequest:
    return GraphRequest(method="GET", url=f"/deviceManagement/assignmentFilters/{filter_id}")


__all__ = [
    "GraphRequest",
    "GraphMethod",
    "PolicyCollection",
    "policy_list_request",
    "policy_assignments_request",
    "group_request",
    "assignment_filter_request",
]
