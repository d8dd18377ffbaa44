from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, Iterable

from pydantic import AliasChoices, Field, field_validator

from .assignment import ODATA_PREFIX, AssignmentRecord
from .common import GraphBaseModel, TimestampedResource


class PolicyCategory(StrEnum):
    """Exported policy categories, in export order."""

    DEVICE_CONFIGURATION = "DeviceConfiguration"
    SETTINGS_CATALOG = "SettingsCatalog"
    COMPLIANCE = "Compliance"

    @classmethod
    def ordered(cls, selected: Iterable["PolicyCategory"] | None = None) -> list["PolicyCategory"]:
        """Return categories in enumeration order, optionally restricted."""

        if selected is None:
            return list(cls)
        wanted = {cls(item) for item in selected}
        return [member for member in cls if member in wanted]


class GraphPolicy(TimestampedResource):
    """Policy payload shared by the three device-management collections."""

    display_name: str | None = Field(
        default=None,
        alias="displayName",
        validation_alias=AliasChoices("displayName", "name"),
    )
    description: str | None = None
    version: int | None = None
    odata_type: str | None = Field(default=None, alias="@odata.type")
    technologies: list[str] | None = None
    platform_type: str | None = Field(
        default=None,
        alias="platformType",
        validation_alias=AliasChoices("platformType", "platforms"),
    )

    @field_validator("technologies", mode="before")
    @classmethod
    def _split_technologies(cls, value: Any) -> Any:
        # configurationPolicies reports technologies as a comma separated flag string.
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @property
    def name(self) -> str:
        return self.display_name or self.id


def compliance_platform(odata_type: str | None) -> str | None:
    """Derive a platform label from a compliance policy ``@odata.type``.

    ``#microsoft.graph.windows10CompliancePolicy`` becomes ``windows10``.
    """

    if not odata_type:
        return None
    name = odata_type
    if name.startswith(ODATA_PREFIX):
        name = name[len(ODATA_PREFIX) :]
    suffix = "CompliancePolicy"
    if name.endswith(suffix) and len(name) > len(suffix):
        name = name[: -len(suffix)]
    return name


_DISCRIMINATOR_FIELDS: dict[PolicyCategory, str] = {
    PolicyCategory.DEVICE_CONFIGURATION: "odata_type",
    PolicyCategory.SETTINGS_CATALOG: "technologies",
    PolicyCategory.COMPLIANCE: "platform_type",
}


class PolicyRecord(GraphBaseModel):
    """Per-policy export document."""

    category: PolicyCategory = Field(alias="Type")
    id: str = Field(alias="Id")
    display_name: str = Field(alias="DisplayName")
    description: str | None = Field(default=None, alias="Description")
    version: int | None = Field(default=None, alias="Version")
    created_date_time: datetime | None = Field(default=None, alias="CreatedDateTime")
    last_modified_date_time: datetime | None = Field(
        default=None, alias="LastModifiedDateTime"
    )
    odata_type: str | None = Field(default=None, alias="ODataType")
    technologies: list[str] | None = Field(default=None, alias="Technologies")
    platform_type: str | None = Field(default=None, alias="PlatformType")
    assignments: list[AssignmentRecord] = Field(default_factory=list, alias="Assignments")
    is_active: bool = Field(default=False, alias="IsActive")

    def to_export(self) -> dict[str, Any]:
        """Serialize with only the discriminator that belongs to the category."""

        keep = _DISCRIMINATOR_FIELDS[PolicyCategory(self.category)]
        exclude = {name for name in _DISCRIMINATOR_FIELDS.values() if name != keep}
        return self.model_dump(mode="json", by_alias=True, exclude=exclude)


class SummaryRow(GraphBaseModel):
    """One row of the aggregate summary."""

    category: PolicyCategory = Field(alias="Type")
    policy_id: str = Field(alias="PolicyId")
    policy_name: str = Field(alias="PolicyName")
    version: int | None = Field(default=None, alias="Version")
    is_active: bool = Field(alias="IsActive")
    assignment_count: int = Field(alias="AssignmentCount")
    assigned_targets: str = Field(alias="AssignedTargets")

    @classmethod
    def from_policy(cls, record: PolicyRecord, *, separator: str = "; ") -> "SummaryRow":
        return cls(
            category=record.category,
            policy_id=record.id,
            policy_name=record.display_name,
            version=record.version,
            is_active=record.is_active,
            assignment_count=len(record.assignments),
            assigned_targets=separator.join(
                assignment.target_resolved for assignment in record.assignments
            ),
        )

    def to_export(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


SUMMARY_COLUMNS: tuple[str, ...] = (
    "Type",
    "PolicyId",
    "PolicyName",
    "Version",
    "IsActive",
    "AssignmentCount",
    "AssignedTargets",
)


__all__ = [
    "PolicyCategory",
    "GraphPolicy",
    "PolicyRecord",
    "SummaryRow",
    "SUMMARY_COLUMNS",
    "compliance_platform",
]
