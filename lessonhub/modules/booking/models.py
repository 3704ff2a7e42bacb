"""Booking ORM models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from lessonhub.core.database import Base, BaseModelMixin, enum_values
from lessonhub.core.enums import BookingStatusEnum, DayKindEnum
from lessonhub.modules.availability.domain import SlotKey

_APPROVED_ONLY = text("status = 'approved'")
_PENDING_OR_APPROVED = text("status IN ('pending', 'approved')")


class Booking(BaseModelMixin, Base):
    """Student request for one teacher slot."""

    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_slot_key", "teacher_id", "day", "start_time", "end_time"),
        Index(
            "uq_bookings_approved_slot",
            "teacher_id",
            "day",
            "start_time",
            "end_time",
            unique=True,
            postgresql_where=_APPROVED_ONLY,
            sqlite_where=_APPROVED_ONLY,
        ),
        Index(
            "uq_bookings_active_student_slot",
            "student_id",
            "teacher_id",
            "day",
            "start_time",
            "end_time",
            unique=True,
            postgresql_where=_PENDING_OR_APPROVED,
            sqlite_where=_PENDING_OR_APPROVED,
        ),
    )

    student_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    teacher_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    day_kind: Mapped[DayKindEnum] = mapped_column(
        SAEnum(DayKindEnum, name="day_kind_enum", native_enum=False, values_callable=enum_values),
        nullable=False,
    )
    day: Mapped[str] = mapped_column(String(16), nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)

    status: Mapped[BookingStatusEnum] = mapped_column(
        SAEnum(BookingStatusEnum, name="booking_status_enum", native_enum=False, values_callable=enum_values),
        default=BookingStatusEnum.PENDING,
        nullable=False,
        index=True,
    )
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def slot_key(self) -> SlotKey:
        return SlotKey(self.teacher_id, self.day, self.start_time, self.end_time)
