"""Core enums used across modules."""

from enum import StrEnum


class RoleEnum(StrEnum):
    """System roles."""

    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class DayKindEnum(StrEnum):
    """Shape of an availability day key."""

    WEEKDAY = "weekday"
    DATE = "date"


class BookingStatusEnum(StrEnum):
    """Booking request lifecycle status."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ConflictReasonEnum(StrEnum):
    """Machine-readable reason attached to booking conflicts."""

    SLOT_ALREADY_BOOKED = "slot_already_booked"
    DUPLICATE_REQUEST = "duplicate_request"
    SLOT_TAKEN_MEANWHILE = "slot_taken_meanwhile"
