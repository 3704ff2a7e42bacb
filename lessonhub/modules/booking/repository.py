"""Booking repository layer."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lessonhub.core.enums import BookingStatusEnum
from lessonhub.modules.availability.domain import DayKey, SlotKey, TimeRange
from lessonhub.modules.booking.models import Booking


def _slot_filter(slot_key: SlotKey):
    return (
        Booking.teacher_id == slot_key.teacher_id,
        Booking.day == slot_key.day,
        Booking.start_time == slot_key.start_time,
        Booking.end_time == slot_key.end_time,
    )


class BookingRepository:
    """DB operations for the booking ledger."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @asynccontextmanager
    async def slot_transaction(self, slot_key: SlotKey) -> AsyncIterator[list[Booking]]:
        """Lock every booking on ``slot_key`` inside a savepoint.

        Row locks are held until the request transaction ends, so concurrent
        writers on the same slot key serialise here. Any error raised in the
        block rolls the savepoint back.
        """
        async with self.session.begin_nested():
            stmt = (
                select(Booking)
                .where(*_slot_filter(slot_key))
                .order_by(Booking.id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            yield list((await self.session.scalars(stmt)).all())

    async def create_booking(
        self,
        student_id: UUID,
        teacher_id: UUID,
        day_key: DayKey,
        time_range: TimeRange,
    ) -> Booking:
        booking = Booking(
            student_id=student_id,
            teacher_id=teacher_id,
            day_kind=day_key.kind,
            day=day_key.key,
            start_time=time_range.start,
            end_time=time_range.end,
            status=BookingStatusEnum.PENDING,
        )
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def get_booking_by_id(self, booking_id: UUID) -> Booking | None:
        stmt = select(Booking).where(Booking.id == booking_id)
        return await self.session.scalar(stmt)

    async def reject_pending_competitors(
        self,
        slot_key: SlotKey,
        exclude_booking_id: UUID,
        decided_at: datetime,
    ) -> list[Booking]:
        """Bulk-move other PENDING bookings on the slot to REJECTED."""
        stmt = (
            update(Booking)
            .where(
                *_slot_filter(slot_key),
                Booking.id != exclude_booking_id,
                Booking.status == BookingStatusEnum.PENDING,
            )
            .values(status=BookingStatusEnum.REJECTED, decided_at=decided_at, updated_at=decided_at)
            .returning(Booking)
            .execution_options(synchronize_session="fetch")
        )
        return list((await self.session.scalars(stmt)).all())

    async def set_status(
        self,
        booking: Booking,
        status: BookingStatusEnum,
        decided_at: datetime,
    ) -> Booking:
        booking.status = status
        booking.decided_at = decided_at
        await self.session.flush()
        return booking

    async def delete_booking(self, booking: Booking) -> None:
        await self.session.delete(booking)
        await self.session.flush()

    async def list_bookings(
        self,
        *,
        student_id: UUID | None = None,
        teacher_id: UUID | None = None,
        limit: int,
        offset: int,
    ) -> tuple[list[Booking], int]:
        base_stmt: Select[tuple[Booking]] = select(Booking)
        if student_id is not None:
            base_stmt = base_stmt.where(Booking.student_id == student_id)
        if teacher_id is not None:
            base_stmt = base_stmt.where(Booking.teacher_id == teacher_id)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(Booking.created_at.desc()).limit(limit).offset(offset)
        items = list((await self.session.scalars(stmt)).all())
        return items, total

    async def list_approved_for_teacher(self, teacher_id: UUID) -> list[Booking]:
        stmt = select(Booking).where(
            Booking.teacher_id == teacher_id,
            Booking.status == BookingStatusEnum.APPROVED,
        )
        return list((await self.session.scalars(stmt)).all())
