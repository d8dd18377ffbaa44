from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from pydantic import ConfigDict, Field

from .common import GraphBaseModel

ODATA_PREFIX = "#microsoft.graph."


class TargetKind(StrEnum):
    """Assignment target discriminators the exporter understands."""

    ALL_DEVICES = "allDevicesAssignmentTarget"
    ALL_LICENSED_USERS = "allLicensedUsersAssignmentTarget"
    GROUP = "groupAssignmentTarget"
    UNKNOWN = "unknown"

    @classmethod
    def from_odata_type(cls, value: str | None) -> "TargetKind":
        """Classify a raw ``@odata.type`` with or without the Graph namespace."""

        if not value:
            return cls.UNKNOWN
        name = value.strip()
        if name.startswith(ODATA_PREFIX):
            name = name[len(ODATA_PREFIX) :]
        name = name.lower()
        for member in cls:
            if member is not cls.UNKNOWN and member.value.lower() == name:
                return member
        return cls.UNKNOWN


class AssignmentTarget(GraphBaseModel):
    """Raw target as returned by Graph.

    Unmodelled properties are kept in ``model_extra`` so lookups can fall back
    to them by wire key.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
        frozen=True,
    )

    odata_type: str | None = Field(default=None, alias="@odata.type")
    group_id: str | None = Field(default=None, alias="groupId")
    filter_id: str | None = Field(
        default=None,
        alias="deviceAndAppManagementAssignmentFilterId",
    )
    filter_type: str | None = Field(
        default=None,
        alias="deviceAndAppManagementAssignmentFilterType",
    )


class PolicyAssignment(GraphBaseModel):
    """Raw assignment record from a policy ``/assignments`` collection."""

    id: str | None = None
    target: AssignmentTarget | None = None


# Parsed target variants -------------------------------------------------


@dataclass(frozen=True, slots=True)
class FilterReference:
    filter_id: str
    filter_type: str | None = None


@dataclass(frozen=True, slots=True)
class AllDevicesTarget:
    odata_type: str | None = None
    filter: FilterReference | None = None


@dataclass(frozen=True, slots=True)
class AllLicensedUsersTarget:
    odata_type: str | None = None
    filter: FilterReference | None = None


@dataclass(frozen=True, slots=True)
class GroupTarget:
    group_id: str | None
    odata_type: str | None = None
    filter: FilterReference | None = None


@dataclass(frozen=True, slots=True)
class UnknownTarget:
    """Any other target type, e.g. ``exclusionGroupAssignmentTarget``."""

    odata_type: str | None
    group_id: str | None = None
    filter: FilterReference | None = None


ParsedTarget = AllDevicesTarget | AllLicensedUsersTarget | GroupTarget | UnknownTarget


class AssignmentRecord(GraphBaseModel):
    """Resolved assignment as written into the per-policy document."""

    assignment_id: str | None = Field(default=None, alias="AssignmentId")
    target_odata_type: str | None = Field(default=None, alias="TargetODataType")
    target_group_id: str | None = Field(default=None, alias="TargetGroupId")
    target_resolved: str = Field(alias="TargetResolved")


__all__ = [
    "ODATA_PREFIX",
    "TargetKind",
    "AssignmentTarget",
    "PolicyAssignment",
    "FilterReference",
    "AllDevicesTarget",
    "AllLicensedUsersTarget",
    "GroupTarget",
    "UnknownTarget",
    "ParsedTarget",
    "AssignmentRecord",
]
