from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Self

from pydantic import BaseModel, ConfigDict, Field


class GraphBaseModel(BaseModel):
    """Immutable model populated from Graph's camelCase payloads.

    Fields may also be set by their Python names; unknown keys are dropped
    unless a subclass opts into keeping them.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        use_enum_values=True,
    )

    @classmethod
    def from_graph(cls, payload: Mapping[str, Any]) -> Self:
        return cls.model_validate(dict(payload))


class GraphResource(GraphBaseModel):
    id: str


class TimestampedResource(GraphResource):
    created_date_time: datetime | None = Field(default=None, alias="createdDateTime")
    last_modified_date_time: datetime | None = Field(default=None, alias="lastModifiedDateTime")
