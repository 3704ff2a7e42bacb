"""Topic and event names of the change notification contract."""

from __future__ import annotations

from uuid import UUID

AVAILABILITY_UPDATED = "availability-updated"
NEW_BOOKING_REQUEST = "new-booking-request"
BOOKING_UPDATED = "booking-updated"
BOOKING_STATUS_CHANGED = "booking-status-changed"
BOOKING_CANCELLED = "booking-cancelled"
BOOKING_DELETED = "booking-deleted"


def user_topic(user_id: UUID) -> str:
    return f"user:{user_id}"


def teacher_availability_topic(teacher_id: UUID) -> str:
    return f"teacher-availability:{teacher_id}"


def availability_for_teacher_topic(teacher_id: UUID) -> str:
    """Topic watched by students browsing the teacher's open slots."""
    return f"availability-for-teacher:{teacher_id}"


def teacher_bookings_topic(teacher_id: UUID) -> str:
    return f"teacher-bookings:{teacher_id}"


def student_bookings_topic(student_id: UUID) -> str:
    return f"student-bookings:{student_id}"


def availability_topics(teacher_id: UUID) -> tuple[str, str]:
    """Both topics refreshed when a teacher's open slots change."""
    return teacher_availability_topic(teacher_id), availability_for_teacher_topic(teacher_id)
