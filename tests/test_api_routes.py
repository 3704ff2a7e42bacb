from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from types import SimpleNamespace
from uuid import UUID, uuid4

import httpx
import pytest
import pytest_asyncio

import lessonhub.main as main_module
from lessonhub.core.enums import BookingStatusEnum, DayKindEnum, RoleEnum
from lessonhub.modules.availability.domain import TimeRange
from lessonhub.modules.availability.projector import OpenAvailability
from lessonhub.modules.availability.service import get_availability_service
from lessonhub.modules.booking.service import get_booking_service
from lessonhub.modules.identity.service import get_current_user
from lessonhub.shared.exceptions import ConflictException, PolicyException

API = "/api/v1"


@dataclass
class FakeBooking:
    student_id: UUID
    teacher_id: UUID
    day: str = "Monday"
    start_time: str = "14:00"
    end_time: str = "16:00"
    day_kind: DayKindEnum = DayKindEnum.WEEKDAY
    status: BookingStatusEnum = BookingStatusEnum.PENDING
    decided_at: datetime | None = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class StubBookingService:
    def __init__(self) -> None:
        self.approve_error: Exception | None = None
        self.create_error: Exception | None = None
        self.deleted: list[UUID] = []
        self.bookings: list[FakeBooking] = []

    async def create_booking(self, payload, actor):
        if self.create_error is not None:
            raise self.create_error
        booking = FakeBooking(student_id=actor.id, teacher_id=payload.teacher_id)
        self.bookings.append(booking)
        return booking, "Other students have already requested this slot; the teacher will pick one."

    async def set_status(self, booking_id, payload, actor):
        if self.approve_error is not None:
            raise self.approve_error
        return FakeBooking(id=booking_id, student_id=uuid4(), teacher_id=actor.id, status=payload.status)

    async def delete_booking(self, booking_id, actor) -> None:
        self.deleted.append(booking_id)

    async def list_student_bookings(self, actor, limit, offset):
        return self.bookings[offset : offset + limit], len(self.bookings)


class StubAvailabilityService:
    def __init__(self) -> None:
        self.as_of_calls: list[date | None] = []

    async def compute_open_slots(self, teacher_id, as_of=None):
        self.as_of_calls.append(as_of)
        now = datetime.now(UTC)
        return [
            OpenAvailability(
                id=uuid4(),
                teacher_id=teacher_id,
                day_kind=DayKindEnum.WEEKDAY,
                day="Monday",
                time_ranges=[TimeRange("09:00", "10:00")],
                created_at=now,
                updated_at=now,
            ),
        ]


def make_user(role: RoleEnum) -> SimpleNamespace:
    now = datetime.now(UTC)
    return SimpleNamespace(
        id=uuid4(),
        email=f"{role.value}@lessonhub.dev",
        display_name=role.value.title(),
        is_active=True,
        role=SimpleNamespace(id=uuid4(), name=role),
        created_at=now,
        updated_at=now,
    )


@dataclass
class ApiContext:
    client: httpx.AsyncClient
    bookings: StubBookingService
    availability: StubAvailabilityService
    current: dict


@pytest_asyncio.fixture()
async def api() -> AsyncIterator[ApiContext]:
    bookings = StubBookingService()
    availability = StubAvailabilityService()
    current = {"user": make_user(RoleEnum.STUDENT)}

    main_module.app.dependency_overrides[get_booking_service] = lambda: bookings
    main_module.app.dependency_overrides[get_availability_service] = lambda: availability
    main_module.app.dependency_overrides[get_current_user] = lambda: current["user"]
    transport = httpx.ASGITransport(app=main_module.app)
    try:
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield ApiContext(client, bookings, availability, current)
    finally:
        main_module.app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_student_creates_booking_with_conflict_warning(api: ApiContext) -> None:
    teacher_id = uuid4()

    response = await api.client.post(
        f"{API}/bookings",
        json={"teacher_id": str(teacher_id), "day": "monday", "time_range": {"start": "14:00", "end": "16:00"}},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["teacher_id"] == str(teacher_id)
    assert body["conflict_warning"]


@pytest.mark.asyncio
async def test_teacher_cannot_create_booking(api: ApiContext) -> None:
    api.current["user"] = make_user(RoleEnum.TEACHER)

    response = await api.client.post(
        f"{API}/bookings",
        json={"teacher_id": str(uuid4()), "day": "monday", "time_range": {"start": "14:00", "end": "16:00"}},
    )

    assert response.status_code == 403
    assert api.bookings.bookings == []


@pytest.mark.asyncio
async def test_policy_violation_is_reported_as_403(api: ApiContext) -> None:
    api.bookings.create_error = PolicyException("Please contact the teacher before requesting a booking")

    response = await api.client.post(
        f"{API}/bookings",
        json={"teacher_id": str(uuid4()), "day": "monday", "time_range": {"start": "14:00", "end": "16:00"}},
    )

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "policy_violation"


@pytest.mark.asyncio
async def test_approval_conflict_carries_reason(api: ApiContext) -> None:
    api.current["user"] = make_user(RoleEnum.TEACHER)
    api.bookings.approve_error = ConflictException(
        "Another request for this slot was approved meanwhile",
        reason="slot_taken_meanwhile",
    )

    response = await api.client.put(f"{API}/bookings/{uuid4()}/status", json={"status": "approved"})

    assert response.status_code == 409
    assert response.json()["error"] == {
        "code": "conflict",
        "message": "Another request for this slot was approved meanwhile",
        "reason": "slot_taken_meanwhile",
    }


@pytest.mark.asyncio
async def test_teacher_approves_booking(api: ApiContext) -> None:
    api.current["user"] = make_user(RoleEnum.TEACHER)
    booking_id = uuid4()

    response = await api.client.put(f"{API}/bookings/{booking_id}/status", json={"status": "approved"})

    assert response.status_code == 200
    assert response.json()["id"] == str(booking_id)
    assert response.json()["status"] == "approved"


@pytest.mark.asyncio
async def test_delete_booking_returns_no_content(api: ApiContext) -> None:
    booking_id = uuid4()

    response = await api.client.delete(f"{API}/bookings/{booking_id}")

    assert response.status_code == 204
    assert api.bookings.deleted == [booking_id]


@pytest.mark.asyncio
async def test_student_booking_list_is_paginated(api: ApiContext) -> None:
    student = api.current["user"]
    api.bookings.bookings = [FakeBooking(student_id=student.id, teacher_id=uuid4()) for _ in range(3)]

    response = await api.client.get(f"{API}/bookings/student/me", params={"limit": 2, "offset": 0})

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 3
    assert body["limit"] == 2
    assert len(body["items"]) == 2


@pytest.mark.asyncio
async def test_open_slots_are_public_and_accept_as_of(api: ApiContext) -> None:
    teacher_id = uuid4()

    response = await api.client.get(f"{API}/availability/teacher/{teacher_id}", params={"as_of": "2026-03-10"})

    assert response.status_code == 200
    body = response.json()
    assert body[0]["teacher_id"] == str(teacher_id)
    assert body[0]["time_ranges"] == [{"start": "09:00", "end": "10:00"}]
    assert api.availability.as_of_calls == [date(2026, 3, 10)]


@pytest.mark.asyncio
async def test_users_me_returns_current_profile(api: ApiContext) -> None:
    response = await api.client.get(f"{API}/identity/users/me")

    assert response.status_code == 200
    assert response.json()["role"]["name"] == "student"
    assert set(response.json()) == {
        "id",
        "email",
        "display_name",
        "is_active",
        "role",
        "created_at",
        "updated_at",
    }
