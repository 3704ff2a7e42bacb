"""Open-slot projection: declared inventory minus approved bookings."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol
from uuid import UUID

from lessonhub.core.enums import BookingStatusEnum, DayKindEnum
from lessonhub.modules.availability.domain import DayKey, SlotKey, TimeRange


class InventoryEntry(Protocol):
    id: UUID
    teacher_id: UUID
    day_kind: DayKindEnum
    day: str
    created_at: datetime
    updated_at: datetime

    @property
    def day_key(self) -> DayKey: ...

    def ranges(self) -> list[TimeRange]: ...


class BookedSlot(Protocol):
    teacher_id: UUID
    day: str
    start_time: str
    end_time: str
    status: BookingStatusEnum


@dataclass(slots=True)
class OpenAvailability:
    """Inventory entry carrying only its still-bookable ranges."""

    id: UUID
    teacher_id: UUID
    day_kind: DayKindEnum
    day: str
    time_ranges: list[TimeRange]
    created_at: datetime
    updated_at: datetime


def covered_slot_keys(bookings: Iterable[BookedSlot]) -> set[SlotKey]:
    """Slot keys held by APPROVED bookings."""
    return {
        SlotKey(booking.teacher_id, booking.day, booking.start_time, booking.end_time)
        for booking in bookings
        if booking.status == BookingStatusEnum.APPROVED
    }


def compute_open_slots(
    entries: Iterable[InventoryEntry],
    bookings: Iterable[BookedSlot],
    as_of: date,
    *,
    grace_days: int = 1,
) -> list[OpenAvailability]:
    """Return current entries with approved ranges removed.

    Weekday entries are never dropped by date. A date entry survives while its
    date is no earlier than ``as_of - grace_days``, which tolerates clock skew
    between client and server. Covered ranges are removed on exact
    ``start``/``end`` match only; a booking that partially overlaps a declared
    range leaves that range visible.
    """
    covered = covered_slot_keys(bookings)
    projected: list[OpenAvailability] = []
    for entry in entries:
        if not entry.day_key.is_current(as_of, grace_days):
            continue

        open_ranges = [
            time_range
            for time_range in entry.ranges()
            if SlotKey(entry.teacher_id, entry.day, time_range.start, time_range.end) not in covered
        ]
        if not open_ranges:
            continue

        projected.append(
            OpenAvailability(
                id=entry.id,
                teacher_id=entry.teacher_id,
                day_kind=entry.day_kind,
                day=entry.day,
                time_ranges=open_ranges,
                created_at=entry.created_at,
                updated_at=entry.updated_at,
            ),
        )
    return projected
