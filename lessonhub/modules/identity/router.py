"""Identity API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from lessonhub.modules.identity.schemas import UserRead
from lessonhub.modules.identity.service import get_current_user

router = APIRouter(prefix="/identity", tags=["identity"])


@router.get("/users/me", response_model=UserRead)
async def get_me(current_user=Depends(get_current_user)) -> UserRead:
    """Return profile of authenticated user."""
    return UserRead.model_validate(current_user)
