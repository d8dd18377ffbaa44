"""Domain models for Intune policies and their assignments."""

from .assignment import (
    AllDevicesTarget,
    AllLicensedUsersTarget,
    AssignmentRecord,
    AssignmentTarget,
    FilterReference,
    GroupTarget,
    ParsedTarget,
    PolicyAssignment,
    TargetKind,
    UnknownTarget,
)
from .common import GraphBaseModel, GraphResource, TimestampedResource
from .directory import AssignmentFilter, DirectoryGroup
from .policy import (
    SUMMARY_COLUMNS,
    GraphPolicy,
    PolicyCategory,
    PolicyRecord,
    SummaryRow,
    compliance_platform,
)

__all__ = [
    "GraphBaseModel",
    "GraphResource",
    "TimestampedResource",
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
    "DirectoryGroup",
    "AssignmentFilter",
    "PolicyCategory",
    "GraphPolicy",
    "PolicyRecord",
    "SummaryRow",
    "SUMMARY_COLUMNS",
    "compliance_platform",
]
