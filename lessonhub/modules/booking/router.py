"""Booking API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from lessonhub.core.enums import RoleEnum
from lessonhub.modules.booking.schemas import (
    BookingCreate,
    BookingCreateRead,
    BookingRead,
    BookingStatusUpdate,
)
from lessonhub.modules.booking.service import BookingService, get_booking_service
from lessonhub.modules.identity.service import get_current_user, require_roles
from lessonhub.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingCreateRead, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(require_roles(RoleEnum.STUDENT)),
) -> BookingCreateRead:
    """Request a teacher slot as PENDING."""
    booking, warning = await service.create_booking(payload, current_user)
    read = BookingRead.model_validate(booking)
    return BookingCreateRead(**read.model_dump(), conflict_warning=warning)


@router.get("/student/me", response_model=Page[BookingRead])
async def list_my_student_bookings(
    pagination=Depends(get_pagination_params),
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(require_roles(RoleEnum.STUDENT)),
) -> Page[BookingRead]:
    """List bookings requested by current student."""
    items, total = await service.list_student_bookings(current_user, pagination.limit, pagination.offset)
    serialized = [BookingRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/teacher/me", response_model=Page[BookingRead])
async def list_my_teacher_bookings(
    pagination=Depends(get_pagination_params),
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(require_roles(RoleEnum.TEACHER)),
) -> Page[BookingRead]:
    """List bookings addressed to current teacher."""
    items, total = await service.list_teacher_bookings(current_user, pagination.limit, pagination.offset)
    serialized = [BookingRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/{booking_id}", response_model=BookingRead)
async def get_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(get_current_user),
) -> BookingRead:
    booking = await service.get_booking(booking_id, current_user)
    return BookingRead.model_validate(booking)


@router.put("/{booking_id}/status", response_model=BookingRead)
async def set_booking_status(
    booking_id: UUID,
    payload: BookingStatusUpdate,
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(require_roles(RoleEnum.TEACHER)),
) -> BookingRead:
    """Approve or reject a booking request."""
    booking = await service.set_status(booking_id, payload, current_user)
    return BookingRead.model_validate(booking)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(get_current_user),
) -> Response:
    """Delete booking permanently."""
    await service.delete_booking(booking_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
