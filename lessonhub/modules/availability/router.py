"""Availability API router."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from lessonhub.core.enums import RoleEnum
from lessonhub.modules.availability.schemas import AvailabilityCreate, AvailabilityRead, AvailabilityUpdate
from lessonhub.modules.availability.service import AvailabilityService, get_availability_service
from lessonhub.modules.identity.service import require_roles

router = APIRouter(prefix="/availability", tags=["availability"])


@router.post("", response_model=AvailabilityRead, status_code=status.HTTP_201_CREATED)
async def declare_availability(
    payload: AvailabilityCreate,
    service: AvailabilityService = Depends(get_availability_service),
    current_user=Depends(require_roles(RoleEnum.TEACHER)),
) -> AvailabilityRead:
    """Declare a weekday or dated availability entry."""
    entry = await service.declare(payload, current_user)
    return AvailabilityRead.model_validate(entry)


@router.get("/me", response_model=list[AvailabilityRead])
async def list_my_availability(
    service: AvailabilityService = Depends(get_availability_service),
    current_user=Depends(require_roles(RoleEnum.TEACHER)),
) -> list[AvailabilityRead]:
    """List every entry of current teacher, past dates included."""
    entries = await service.list_for_teacher(current_user.id)
    return [AvailabilityRead.model_validate(item) for item in entries]


@router.get("/teacher/{teacher_id}", response_model=list[AvailabilityRead])
async def list_open_slots(
    teacher_id: UUID,
    as_of: date | None = Query(default=None, description="Reference date, defaults to today (UTC)"),
    service: AvailabilityService = Depends(get_availability_service),
) -> list[AvailabilityRead]:
    """Public view of a teacher's still-bookable slots."""
    projected = await service.compute_open_slots(teacher_id, as_of)
    return [AvailabilityRead.model_validate(item) for item in projected]


@router.put("/{entry_id}", response_model=AvailabilityRead)
async def replace_availability(
    entry_id: UUID,
    payload: AvailabilityUpdate,
    service: AvailabilityService = Depends(get_availability_service),
    current_user=Depends(require_roles(RoleEnum.TEACHER)),
) -> AvailabilityRead:
    entry = await service.replace(entry_id, payload, current_user)
    return AvailabilityRead.model_validate(entry)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_availability(
    entry_id: UUID,
    service: AvailabilityService = Depends(get_availability_service),
    current_user=Depends(require_roles(RoleEnum.TEACHER)),
) -> Response:
    await service.delete(entry_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
