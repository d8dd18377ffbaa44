"""Data models and payload validation."""

from .models import (
    SUMMARY_COLUMNS,
    AllDevicesTarget,
    AllLicensedUsersTarget,
    AssignmentFilter,
    AssignmentRecord,
    AssignmentTarget,
    DirectoryGroup,
    FilterReference,
    GraphBaseModel,
    GraphPolicy,
    GroupTarget,
    ParsedTarget,
    PolicyAssignment,
    PolicyCategory,
    PolicyRecord,
    SummaryRow,
    TargetKind,
    UnknownTarget,
    compliance_platform,
)
from .validation import GraphResponseValidator, ValidationIssue

__all__ = [
    "GraphBaseModel",
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
    "GraphResponseValidator",
    "ValidationIssue",
]
