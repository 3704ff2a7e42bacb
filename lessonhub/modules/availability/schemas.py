"""Availability schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from lessonhub.core.enums import DayKindEnum


class TimeRangePayload(BaseModel):
    """Time-of-day range in 24h ``HH:MM`` form."""

    start: str = Field(min_length=1, max_length=5)
    end: str = Field(min_length=1, max_length=5)


class AvailabilityCreate(BaseModel):
    """Declare availability request."""

    day: str = Field(min_length=1, max_length=16, description="Weekday name or YYYY-MM-DD date")
    time_ranges: list[TimeRangePayload]


class AvailabilityUpdate(BaseModel):
    """Replace availability request; omitted fields stay unchanged."""

    day: str | None = Field(default=None, min_length=1, max_length=16)
    time_ranges: list[TimeRangePayload] | None = None


class TimeRangeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start: str
    end: str


class AvailabilityRead(BaseModel):
    """Availability entry response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    teacher_id: UUID
    day_kind: DayKindEnum
    day: str
    time_ranges: list[TimeRangeRead]
    created_at: datetime
    updated_at: datetime
