"""Export services: resolution, collection and artifact writing."""

from .assignments import (
    AssignmentFetchFailure,
    AssignmentSource,
    build_assignment_sources,
)
from .base import EventHook, LookupResult
from .export import ExportWriter
from .filters import AssignmentFilterResolver
from .groups import GroupNameCache, GroupNameResolver
from .policies import CATEGORY_ENDPOINTS, PolicyListingService, build_policy_record
from .runner import ExportReport, ExportRunner, PolicyWriteFailure
from .targets import TargetDescriptor, is_active, parse_target

__all__ = [
    "EventHook",
    "LookupResult",
    "GroupNameCache",
    "GroupNameResolver",
    "AssignmentFilterResolver",
    "TargetDescriptor",
    "parse_target",
    "is_active",
    "AssignmentSource",
    "AssignmentFetchFailure",
    "build_assignment_sources",
    "CATEGORY_ENDPOINTS",
    "PolicyListingService",
    "build_policy_record",
    "ExportWriter",
    "ExportRunner",
    "ExportReport",
    "PolicyWriteFailure",
]
