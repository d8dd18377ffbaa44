"""Normalise assignment targets into labels and classify policy activity.

Raw targets arrive either as typed records (``AssignmentTarget`` models or
any object exposing ``odata_type``/``group_id``/... attributes) or as plain
property bags keyed by their Graph wire names. Every lookup checks the typed
attribute first and the bag second; the first non-empty value wins.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable

from pydantic import BaseModel

from intune_policy_export.data import (
    AllDevicesTarget,
    AllLicensedUsersTarget,
    AssignmentRecord,
    FilterReference,
    GroupTarget,
    ParsedTarget,
    TargetKind,
    UnknownTarget,
)
from intune_policy_export.services.filters import AssignmentFilterResolver
from intune_policy_export.services.groups import GroupNameResolver
from intune_policy_export.utils import get_logger


logger = get_logger(__name__)

ALL_DEVICES_LABEL = "All Devices"
ALL_USERS_LABEL = "All Users"
UNKNOWN_TARGET_LABEL = "Unknown Target"

ODATA_TYPE_KEY = "@odata.type"
GROUP_ID_KEY = "groupId"
FILTER_ID_KEY = "deviceAndAppManagementAssignmentFilterId"
FILTER_TYPE_KEY = "deviceAndAppManagementAssignmentFilterType"

_ACTIVE_KINDS = frozenset(
    {TargetKind.ALL_DEVICES, TargetKind.ALL_LICENSED_USERS, TargetKind.GROUP}
)


def _property_bag(raw: Any) -> Mapping[str, Any]:
    if isinstance(raw, Mapping):
        return raw
    if isinstance(raw, BaseModel):
        return raw.model_extra or {}
    bag = getattr(raw, "additional_data", None)
    if isinstance(bag, Mapping):
        return bag
    return {}


def extract_property(raw: Any, attribute: str, key: str) -> str | None:
    """Read ``attribute`` from a typed record, falling back to ``key`` in its bag."""

    if raw is None:
        return None
    if isinstance(raw, Mapping):
        value = raw.get(attribute)
    else:
        value = getattr(raw, attribute, None)
    if value is None or value == "":
        value = _property_bag(raw).get(key)
    if value is None or value == "":
        return None
    return str(value)


def extract_odata_type(raw: Any) -> str | None:
    return extract_property(raw, "odata_type", ODATA_TYPE_KEY)


def parse_target(raw: Any) -> ParsedTarget:
    """Parse a raw target into one of the tagged target variants."""

    odata_type = extract_odata_type(raw)
    group_id = extract_property(raw, "group_id", GROUP_ID_KEY)
    filter_id = extract_property(raw, "filter_id", FILTER_ID_KEY)
    filter_ref = None
    if filter_id:
        filter_ref = FilterReference(
            filter_id=filter_id,
            filter_type=extract_property(raw, "filter_type", FILTER_TYPE_KEY),
        )

    match TargetKind.from_odata_type(odata_type):
        case TargetKind.ALL_DEVICES:
            return AllDevicesTarget(odata_type=odata_type, filter=filter_ref)
        case TargetKind.ALL_LICENSED_USERS:
            return AllLicensedUsersTarget(odata_type=odata_type, filter=filter_ref)
        case TargetKind.GROUP:
            return GroupTarget(group_id=group_id, odata_type=odata_type, filter=filter_ref)
        case _:
            return UnknownTarget(odata_type=odata_type, group_id=group_id, filter=filter_ref)


def is_active(assignments: Iterable[AssignmentRecord] | None) -> bool:
    """True when any assignment targets all devices, all users or a group.

    Decided on the raw ``TargetODataType`` only; resolved labels are ignored.
    """

    if not assignments:
        return False
    return any(
        TargetKind.from_odata_type(assignment.target_odata_type) in _ACTIVE_KINDS
        for assignment in assignments
    )


class TargetDescriptor:
    """Produce human-readable labels for assignment targets."""

    def __init__(
        self,
        groups: GroupNameResolver,
        filters: AssignmentFilterResolver,
    ) -> None:
        self._groups = groups
        self._filters = filters

    async def describe(self, raw: Any) -> str:
        return await self.describe_parsed(parse_target(raw))

    async def describe_parsed(self, target: ParsedTarget) -> str:
        match target:
            case AllDevicesTarget():
                label = ALL_DEVICES_LABEL
            case AllLicensedUsersTarget():
                label = ALL_USERS_LABEL
            case GroupTarget(group_id=group_id):
                label = f"Group: {await self._group_name(group_id)}"
            case _:
                label = target.odata_type or UNKNOWN_TARGET_LABEL

        if target.filter is not None:
            fragment = await self._filters.resolve(
                target.filter.filter_id,
                target.filter.filter_type,
            )
            if fragment:
                label = f"{label} {fragment}"
        return label

    async def _group_name(self, group_id: str | None) -> str:
        result = await self._groups.resolve(group_id)
        if result is None:
            return ""
        if not result.resolved:
            logger.debug(
                "Group name unavailable; using identifier",
                group_id=group_id,
                error=str(result.error) if result.error else None,
            )
        return result.value


__all__ = [
    "ALL_DEVICES_LABEL",
    "ALL_USERS_LABEL",
    "UNKNOWN_TARGET_LABEL",
    "TargetDescriptor",
    "extract_odata_type",
    "extract_property",
    "is_active",
    "parse_target",
]
