"""Availability business logic layer."""

from __future__ import annotations

import logging
from datetime import date
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lessonhub.core.config import get_settings
from lessonhub.core.database import get_db_session
from lessonhub.core.enums import RoleEnum
from lessonhub.modules.availability.domain import parse_day_key, validate_time_ranges
from lessonhub.modules.availability.models import AvailabilityEntry
from lessonhub.modules.availability.projector import OpenAvailability, compute_open_slots
from lessonhub.modules.availability.repository import AvailabilityRepository
from lessonhub.modules.availability.schemas import AvailabilityCreate, AvailabilityUpdate
from lessonhub.modules.booking.repository import BookingRepository
from lessonhub.modules.identity.models import User
from lessonhub.modules.identity.repository import IdentityRepository
from lessonhub.modules.realtime import topics
from lessonhub.modules.realtime.service import ChangeNotifier, get_request_notifier
from lessonhub.shared.access import actor_role, ensure_owns_teacher_resource
from lessonhub.shared.exceptions import NotFoundException
from lessonhub.shared.utils import utc_today

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Teacher slot inventory and student-facing open slot projection."""

    def __init__(
        self,
        availability_repository: AvailabilityRepository,
        booking_repository: BookingRepository,
        identity_repository: IdentityRepository,
        notifier: ChangeNotifier,
        *,
        past_grace_days: int = 1,
    ) -> None:
        self.availability_repository = availability_repository
        self.booking_repository = booking_repository
        self.identity_repository = identity_repository
        self.notifier = notifier
        self.past_grace_days = past_grace_days

    async def _ensure_teacher_exists(self, teacher_id: UUID) -> User:
        teacher = await self.identity_repository.get_user_by_id(teacher_id)
        if teacher is None or actor_role(teacher) != RoleEnum.TEACHER:
            raise NotFoundException("Teacher not found")
        return teacher

    async def _get_owned_entry(self, entry_id: UUID, actor: User) -> AvailabilityEntry:
        entry = await self.availability_repository.get_entry_by_id(entry_id)
        if entry is None:
            raise NotFoundException("Availability entry not found")
        ensure_owns_teacher_resource(actor, entry.teacher_id, "You cannot manage this availability entry")
        return entry

    async def _publish_changed(self, teacher_id: UUID, entry_id: UUID, action: str) -> None:
        payload = {"teacher_id": str(teacher_id), "entry_id": str(entry_id), "action": action}
        for topic in topics.availability_topics(teacher_id):
            await self.notifier.publish(topic, topics.AVAILABILITY_UPDATED, payload)

    async def declare(self, payload: AvailabilityCreate, actor: User) -> AvailabilityEntry:
        """Create an inventory entry for the acting teacher."""
        day_key = parse_day_key(payload.day)
        ranges = validate_time_ranges((item.start, item.end) for item in payload.time_ranges)
        teacher = await self._ensure_teacher_exists(actor.id)

        entry = await self.availability_repository.create_entry(teacher.id, day_key, ranges)
        logger.info("Teacher %s declared availability %s on %s", teacher.id, entry.id, entry.day)
        await self._publish_changed(teacher.id, entry.id, "created")
        return entry

    async def replace(self, entry_id: UUID, payload: AvailabilityUpdate, actor: User) -> AvailabilityEntry:
        """Overwrite day and/or ranges; supplied ranges replace the old set entirely."""
        entry = await self._get_owned_entry(entry_id, actor)
        day_key = parse_day_key(payload.day) if payload.day is not None else None
        ranges = None
        if payload.time_ranges is not None:
            ranges = validate_time_ranges((item.start, item.end) for item in payload.time_ranges)

        entry = await self.availability_repository.replace_entry(entry, day_key, ranges)
        logger.info("Teacher %s replaced availability %s", entry.teacher_id, entry.id)
        await self._publish_changed(entry.teacher_id, entry.id, "updated")
        return entry

    async def delete(self, entry_id: UUID, actor: User) -> None:
        entry = await self._get_owned_entry(entry_id, actor)
        teacher_id, removed_id = entry.teacher_id, entry.id
        await self.availability_repository.delete_entry(entry)
        logger.info("Teacher %s deleted availability %s", teacher_id, removed_id)
        await self._publish_changed(teacher_id, removed_id, "deleted")

    async def list_for_teacher(self, teacher_id: UUID) -> list[AvailabilityEntry]:
        """All declared entries, past dates included."""
        return await self.availability_repository.list_entries_for_teacher(teacher_id)

    async def compute_open_slots(self, teacher_id: UUID, as_of: date | None = None) -> list[OpenAvailability]:
        """Project the teacher's inventory minus approved bookings."""
        await self._ensure_teacher_exists(teacher_id)
        entries = await self.availability_repository.list_entries_for_teacher(teacher_id)
        bookings = await self.booking_repository.list_approved_for_teacher(teacher_id)
        return compute_open_slots(
            entries,
            bookings,
            as_of or utc_today(),
            grace_days=self.past_grace_days,
        )


async def get_availability_service(
    session: AsyncSession = Depends(get_db_session),
    notifier: ChangeNotifier = Depends(get_request_notifier),
) -> AvailabilityService:
    """Dependency provider for availability service."""
    return AvailabilityService(
        availability_repository=AvailabilityRepository(session),
        booking_repository=BookingRepository(session),
        identity_repository=IdentityRepository(session),
        notifier=notifier,
        past_grace_days=get_settings().availability_past_grace_days,
    )
