"""Booking business logic layer."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lessonhub.core.config import get_settings
from lessonhub.core.database import get_db_session
from lessonhub.core.enums import BookingStatusEnum, ConflictReasonEnum, RoleEnum
from lessonhub.core.metrics import record_booking_conflict, record_booking_transition
from lessonhub.modules.availability.domain import SlotKey, parse_day_key, validate_time_range
from lessonhub.modules.booking.models import Booking
from lessonhub.modules.booking.repository import BookingRepository
from lessonhub.modules.booking.schemas import BookingCreate, BookingRead, BookingStatusUpdate
from lessonhub.modules.identity.models import User
from lessonhub.modules.identity.repository import IdentityRepository
from lessonhub.modules.messaging.repository import MessagingRepository
from lessonhub.modules.messaging.service import MessagingHistory, MessagingHistoryService
from lessonhub.modules.realtime import topics
from lessonhub.modules.realtime.service import ChangeNotifier, get_request_notifier
from lessonhub.shared.access import actor_role, ensure_owns_booking_resource, ensure_owns_teacher_resource
from lessonhub.shared.exceptions import (
    AuthorizationException,
    ConflictException,
    NotFoundException,
    PolicyException,
    ValidationException,
)
from lessonhub.shared.utils import utc_now

logger = logging.getLogger(__name__)

DECIDABLE_STATUSES = (BookingStatusEnum.APPROVED, BookingStatusEnum.REJECTED)
ACTIVE_STATUSES = (BookingStatusEnum.PENDING, BookingStatusEnum.APPROVED)

PENDING_COMPETITION_WARNING = "Other students have already requested this slot; the teacher will pick one."


def booking_payload(booking: Booking) -> dict[str, Any]:
    """JSON-safe booking snapshot used as event payload."""
    return BookingRead.model_validate(booking).model_dump(mode="json")


class BookingService:
    """Booking ledger rules: create, decide, delete, read."""

    def __init__(
        self,
        booking_repository: BookingRepository,
        identity_repository: IdentityRepository,
        messaging_history: MessagingHistory,
        notifier: ChangeNotifier,
        *,
        require_prior_contact: bool = True,
    ) -> None:
        self.booking_repository = booking_repository
        self.identity_repository = identity_repository
        self.messaging_history = messaging_history
        self.notifier = notifier
        self.require_prior_contact = require_prior_contact

    def _conflict(self, reason: ConflictReasonEnum, message: str) -> ConflictException:
        record_booking_conflict(reason.value)
        return ConflictException(message, reason=reason.value)

    async def _get_teacher(self, teacher_id: UUID) -> User:
        teacher = await self.identity_repository.get_user_by_id(teacher_id)
        if teacher is None or actor_role(teacher) != RoleEnum.TEACHER:
            raise NotFoundException("Teacher not found")
        return teacher

    async def _get_booking(self, booking_id: UUID) -> Booking:
        booking = await self.booking_repository.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        return booking

    async def _publish_availability(self, teacher_id: UUID, booking_id: UUID, action: str) -> None:
        payload = {"teacher_id": str(teacher_id), "booking_id": str(booking_id), "action": action}
        for topic in topics.availability_topics(teacher_id):
            await self.notifier.publish(topic, topics.AVAILABILITY_UPDATED, payload)

    async def _publish_list_refresh(self, booking: Booking, event: str, payload: dict[str, Any]) -> None:
        await self.notifier.publish(topics.teacher_bookings_topic(booking.teacher_id), event, payload)
        await self.notifier.publish(topics.student_bookings_topic(booking.student_id), event, payload)

    async def create_booking(self, payload: BookingCreate, actor: User) -> tuple[Booking, str | None]:
        """Record a PENDING request; returns the booking and an optional conflict warning."""
        if actor_role(actor) != RoleEnum.STUDENT:
            raise AuthorizationException("Only students can request bookings")

        day_key = parse_day_key(payload.day)
        time_range = validate_time_range(payload.time_range.start, payload.time_range.end)
        teacher = await self._get_teacher(payload.teacher_id)

        if self.require_prior_contact and not await self.messaging_history.has_prior_contact(actor.id, teacher.id):
            raise PolicyException("Please contact the teacher before requesting a booking")

        slot_key = SlotKey(teacher.id, day_key.key, time_range.start, time_range.end)
        try:
            async with self.booking_repository.slot_transaction(slot_key) as slot_bookings:
                if any(item.status == BookingStatusEnum.APPROVED for item in slot_bookings):
                    raise self._conflict(ConflictReasonEnum.SLOT_ALREADY_BOOKED, "This slot is already booked")
                if any(item.student_id == actor.id and item.status in ACTIVE_STATUSES for item in slot_bookings):
                    raise self._conflict(
                        ConflictReasonEnum.DUPLICATE_REQUEST,
                        "You already have an active request for this slot",
                    )

                booking = await self.booking_repository.create_booking(
                    student_id=actor.id,
                    teacher_id=teacher.id,
                    day_key=day_key,
                    time_range=time_range,
                )
        except IntegrityError as exc:
            raise self._conflict(
                ConflictReasonEnum.DUPLICATE_REQUEST,
                "You already have an active request for this slot",
            ) from exc

        has_competition = any(
            item.student_id != actor.id and item.status == BookingStatusEnum.PENDING for item in slot_bookings
        )
        warning = PENDING_COMPETITION_WARNING if has_competition else None

        record_booking_transition(BookingStatusEnum.PENDING.value)
        logger.info(
            "Booking %s requested by student %s for teacher %s slot %s %s-%s",
            booking.id,
            actor.id,
            teacher.id,
            booking.day,
            booking.start_time,
            booking.end_time,
        )

        event_payload = booking_payload(booking)
        await self.notifier.publish(topics.user_topic(teacher.id), topics.NEW_BOOKING_REQUEST, event_payload)
        await self._publish_list_refresh(booking, topics.BOOKING_UPDATED, event_payload)
        return booking, warning

    async def set_status(self, booking_id: UUID, payload: BookingStatusUpdate, actor: User) -> Booking:
        """Approve or reject a booking; approval cascade-rejects competing requests."""
        if payload.status not in DECIDABLE_STATUSES:
            raise ValidationException("Status must be approved or rejected")

        booking = await self._get_booking(booking_id)
        ensure_owns_teacher_resource(actor, booking.teacher_id, "Only the booking's teacher can decide on it")
        if booking.status == payload.status:
            return booking

        decided_at = utc_now()
        cascaded: list[Booking] = []
        try:
            async with self.booking_repository.slot_transaction(booking.slot_key) as slot_bookings:
                locked = next((item for item in slot_bookings if item.id == booking.id), None)
                if locked is None:
                    raise NotFoundException("Booking not found")
                booking = locked
                previous_status = booking.status
                if previous_status == payload.status:
                    return booking

                if payload.status == BookingStatusEnum.APPROVED:
                    if any(
                        item.id != booking.id and item.status == BookingStatusEnum.APPROVED
                        for item in slot_bookings
                    ):
                        raise self._conflict(
                            ConflictReasonEnum.SLOT_TAKEN_MEANWHILE,
                            "Another request for this slot was approved meanwhile",
                        )
                    cascaded = await self.booking_repository.reject_pending_competitors(
                        booking.slot_key,
                        booking.id,
                        decided_at,
                    )

                await self.booking_repository.set_status(booking, payload.status, decided_at)
        except IntegrityError as exc:
            raise self._conflict(
                ConflictReasonEnum.SLOT_TAKEN_MEANWHILE,
                "Another request for this slot was approved meanwhile",
            ) from exc

        record_booking_transition(payload.status.value)
        record_booking_transition(BookingStatusEnum.REJECTED.value, len(cascaded))
        logger.info(
            "Booking %s moved %s -> %s by teacher %s (%d competing requests rejected)",
            booking.id,
            previous_status.value,
            payload.status.value,
            actor.id,
            len(cascaded),
        )

        event_payload = booking_payload(booking)
        await self.notifier.publish(
            topics.user_topic(booking.student_id),
            topics.BOOKING_STATUS_CHANGED,
            event_payload,
        )
        await self._publish_list_refresh(booking, topics.BOOKING_UPDATED, event_payload)
        for rejected in cascaded:
            await self.notifier.publish(
                topics.student_bookings_topic(rejected.student_id),
                topics.BOOKING_UPDATED,
                booking_payload(rejected),
            )

        if payload.status == BookingStatusEnum.APPROVED:
            await self._publish_availability(booking.teacher_id, booking.id, "booked")
        elif previous_status == BookingStatusEnum.APPROVED:
            await self._publish_availability(booking.teacher_id, booking.id, "released")
        return booking

    async def delete_booking(self, booking_id: UUID, actor: User) -> None:
        """Permanently remove a booking on behalf of one of its parties or an admin."""
        booking = await self._get_booking(booking_id)
        ensure_owns_booking_resource(actor, booking)

        async with self.booking_repository.slot_transaction(booking.slot_key) as slot_bookings:
            locked = next((item for item in slot_bookings if item.id == booking.id), None)
            if locked is None:
                raise NotFoundException("Booking not found")
            booking = locked
            was_approved = booking.status == BookingStatusEnum.APPROVED
            event_payload = booking_payload(booking)
            await self.booking_repository.delete_booking(booking)

        cancelled_by = actor_role(actor)
        logger.info("Booking %s deleted by %s %s", booking.id, cancelled_by.value, actor.id)

        cancel_payload = {**event_payload, "cancelled_by": cancelled_by.value}
        if actor.id == booking.student_id:
            recipients = [booking.teacher_id]
        elif actor.id == booking.teacher_id:
            recipients = [booking.student_id]
        else:
            recipients = [booking.student_id, booking.teacher_id]
        for recipient_id in recipients:
            await self.notifier.publish(topics.user_topic(recipient_id), topics.BOOKING_CANCELLED, cancel_payload)
        await self._publish_list_refresh(booking, topics.BOOKING_DELETED, event_payload)
        if was_approved:
            await self._publish_availability(booking.teacher_id, booking.id, "released")

    async def get_booking(self, booking_id: UUID, actor: User) -> Booking:
        booking = await self._get_booking(booking_id)
        ensure_owns_booking_resource(actor, booking)
        return booking

    async def list_student_bookings(self, actor: User, limit: int, offset: int) -> tuple[list[Booking], int]:
        return await self.booking_repository.list_bookings(student_id=actor.id, limit=limit, offset=offset)

    async def list_teacher_bookings(self, actor: User, limit: int, offset: int) -> tuple[list[Booking], int]:
        return await self.booking_repository.list_bookings(teacher_id=actor.id, limit=limit, offset=offset)


async def get_booking_service(
    session: AsyncSession = Depends(get_db_session),
    notifier: ChangeNotifier = Depends(get_request_notifier),
) -> BookingService:
    """Dependency provider for booking service."""
    return BookingService(
        booking_repository=BookingRepository(session),
        identity_repository=IdentityRepository(session),
        messaging_history=MessagingHistoryService(MessagingRepository(session)),
        notifier=notifier,
        require_prior_contact=get_settings().booking_require_prior_contact,
    )
