"""Booking schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from lessonhub.core.enums import BookingStatusEnum, DayKindEnum
from lessonhub.modules.availability.schemas import TimeRangePayload


class BookingCreate(BaseModel):
    """Create booking request."""

    teacher_id: UUID
    day: str = Field(min_length=1, max_length=16, description="Weekday name or YYYY-MM-DD date")
    time_range: TimeRangePayload


class BookingStatusUpdate(BaseModel):
    """Teacher decision on a booking request."""

    status: BookingStatusEnum


class BookingRead(BaseModel):
    """Booking response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    teacher_id: UUID
    day_kind: DayKindEnum
    day: str
    start_time: str
    end_time: str
    status: BookingStatusEnum
    decided_at: datetime | None
    created_at: datetime
    updated_at: datetime


class BookingCreateRead(BookingRead):
    """Created booking plus an advisory when other students wait on the slot."""

    conflict_warning: str | None = None
