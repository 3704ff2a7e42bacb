"""Availability repository layer."""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lessonhub.modules.availability.domain import DayKey, TimeRange
from lessonhub.modules.availability.models import AvailabilityEntry, AvailabilityTimeRange


def _build_ranges(ranges: Sequence[TimeRange]) -> list[AvailabilityTimeRange]:
    return [
        AvailabilityTimeRange(position=position, start=item.start, end=item.end)
        for position, item in enumerate(ranges)
    ]


class AvailabilityRepository:
    """DB access for teacher availability inventory."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_entry(
        self,
        teacher_id: UUID,
        day_key: DayKey,
        ranges: Sequence[TimeRange],
    ) -> AvailabilityEntry:
        entry = AvailabilityEntry(
            teacher_id=teacher_id,
            day_kind=day_key.kind,
            day=day_key.key,
            time_ranges=_build_ranges(ranges),
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def get_entry_by_id(self, entry_id: UUID) -> AvailabilityEntry | None:
        stmt = select(AvailabilityEntry).where(AvailabilityEntry.id == entry_id)
        return await self.session.scalar(stmt)

    async def list_entries_for_teacher(self, teacher_id: UUID) -> list[AvailabilityEntry]:
        stmt = (
            select(AvailabilityEntry)
            .where(AvailabilityEntry.teacher_id == teacher_id)
            .order_by(AvailabilityEntry.created_at.asc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def replace_entry(
        self,
        entry: AvailabilityEntry,
        day_key: DayKey | None,
        ranges: Sequence[TimeRange] | None,
    ) -> AvailabilityEntry:
        if day_key is not None:
            entry.day_kind = day_key.kind
            entry.day = day_key.key
        if ranges is not None:
            entry.time_ranges = _build_ranges(ranges)
        await self.session.flush()
        return entry

    async def delete_entry(self, entry: AvailabilityEntry) -> None:
        await self.session.delete(entry)
        await self.session.flush()
