"""Availability inventory ORM models."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Enum as SAEnum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lessonhub.core.database import Base, BaseModelMixin, enum_values
from lessonhub.core.enums import DayKindEnum
from lessonhub.modules.availability.domain import DayKey, TimeRange, day_key_from_parts


class AvailabilityEntry(BaseModelMixin, Base):
    """Teacher-declared time ranges for a weekday or a calendar date."""

    __tablename__ = "availability_entries"

    teacher_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day_kind: Mapped[DayKindEnum] = mapped_column(
        SAEnum(DayKindEnum, name="day_kind_enum", native_enum=False, values_callable=enum_values),
        nullable=False,
    )
    day: Mapped[str] = mapped_column(String(16), nullable=False)

    time_ranges: Mapped[list["AvailabilityTimeRange"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="AvailabilityTimeRange.position",
        lazy="selectin",
    )

    @property
    def day_key(self) -> DayKey:
        return day_key_from_parts(self.day_kind, self.day)

    def ranges(self) -> list[TimeRange]:
        return [TimeRange(item.start, item.end) for item in self.time_ranges]


class AvailabilityTimeRange(BaseModelMixin, Base):
    """One declared range inside an availability entry."""

    __tablename__ = "availability_time_ranges"

    entry_id: Mapped[UUID] = mapped_column(
        ForeignKey("availability_entries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    start: Mapped[str] = mapped_column("start_time", String(5), nullable=False)
    end: Mapped[str] = mapped_column("end_time", String(5), nullable=False)

    entry: Mapped[AvailabilityEntry] = relationship(back_populates="time_ranges")
