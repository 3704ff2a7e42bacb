"""Ownership checks applied before any mutation."""

from __future__ import annotations

from typing import Any, Protocol
from uuid import UUID

from lessonhub.core.enums import RoleEnum
from lessonhub.shared.exceptions import AuthorizationException


class BookingParties(Protocol):
    student_id: UUID
    teacher_id: UUID


def actor_role(actor: Any) -> RoleEnum:
    """Return role name of resolved caller."""
    return RoleEnum(actor.role.name)


def actor_owns_teacher_resource(actor: Any, teacher_id: UUID) -> bool:
    """True when actor is the teacher owning the resource."""
    return actor_role(actor) == RoleEnum.TEACHER and actor.id == teacher_id


def actor_owns_booking_resource(actor: Any, booking: BookingParties) -> bool:
    """True when actor is a party of the booking or an admin."""
    if actor_role(actor) == RoleEnum.ADMIN:
        return True
    return actor.id in (booking.student_id, booking.teacher_id)


def ensure_owns_teacher_resource(actor: Any, teacher_id: UUID, message: str = "Unauthorized.") -> None:
    if not actor_owns_teacher_resource(actor, teacher_id):
        raise AuthorizationException(message)


def ensure_owns_booking_resource(
    actor: Any,
    booking: BookingParties,
    message: str = "Not authorized to access this booking.",
) -> None:
    if not actor_owns_booking_resource(actor, booking):
        raise AuthorizationException(message)
