"""Value types shared by availability inventory and booking requests."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from typing import ClassVar, NamedTuple
from uuid import UUID

from lessonhub.core.enums import DayKindEnum
from lessonhub.shared.exceptions import ValidationException

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_OF_DAY_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


@dataclass(frozen=True, slots=True)
class Weekday:
    """Recurring availability on a named day of the week."""

    kind: ClassVar[DayKindEnum] = DayKindEnum.WEEKDAY

    name: str

    @property
    def key(self) -> str:
        return self.name

    def is_current(self, as_of: date, grace_days: int) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class SpecificDate:
    """Availability on one calendar date."""

    kind: ClassVar[DayKindEnum] = DayKindEnum.DATE

    value: date

    @property
    def key(self) -> str:
        return self.value.isoformat()

    def is_current(self, as_of: date, grace_days: int) -> bool:
        return self.value >= as_of - timedelta(days=grace_days)


DayKey = Weekday | SpecificDate


def parse_day_key(raw: str) -> DayKey:
    """Parse weekday name (any case) or ISO ``YYYY-MM-DD`` date."""
    value = raw.strip()
    if _ISO_DATE_RE.match(value):
        try:
            return SpecificDate(date.fromisoformat(value))
        except ValueError as exc:
            raise ValidationException(f"Invalid calendar date: {value}") from exc

    for weekday in WEEKDAYS:
        if weekday.lower() == value.lower():
            return Weekday(weekday)
    raise ValidationException(f"Day must be a weekday name or a YYYY-MM-DD date, got {raw!r}")


def day_key_from_parts(kind: DayKindEnum, day: str) -> DayKey:
    """Rebuild day key from persisted columns."""
    if kind == DayKindEnum.DATE:
        return SpecificDate(date.fromisoformat(day))
    return Weekday(day)


@dataclass(frozen=True, slots=True)
class TimeRange:
    start: str
    end: str


def normalize_time_of_day(value: str) -> str:
    match = _TIME_OF_DAY_RE.match(value.strip())
    if match is None:
        raise ValidationException(f"Time must use 24h HH:MM format, got {value!r}")
    return f"{int(match.group(1)):02d}:{match.group(2)}"


def validate_time_range(start: str, end: str) -> TimeRange:
    normalized = TimeRange(normalize_time_of_day(start), normalize_time_of_day(end))
    # Zero-padded HH:MM strings order the same way as the times they encode.
    if normalized.start >= normalized.end:
        raise ValidationException(
            f"Time range start must be before end ({normalized.start}-{normalized.end})",
        )
    return normalized


def validate_time_ranges(ranges: Iterable[tuple[str, str]]) -> list[TimeRange]:
    """Validate and normalize a non-empty time range set."""
    validated = [validate_time_range(start, end) for start, end in ranges]
    if not validated:
        raise ValidationException("At least one time range is required")
    return validated


class SlotKey(NamedTuple):
    """Identity of a bookable interval."""

    teacher_id: UUID
    day: str
    start_time: str
    end_time: str
