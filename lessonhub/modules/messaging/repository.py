"""Messaging repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from lessonhub.modules.messaging.models import Message


class MessagingRepository:
    """Read-only access to message history."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def has_message_between(self, first_user_id: UUID, second_user_id: UUID) -> bool:
        stmt = (
            select(Message.id)
            .where(
                or_(
                    and_(Message.sender_id == first_user_id, Message.recipient_id == second_user_id),
                    and_(Message.sender_id == second_user_id, Message.recipient_id == first_user_id),
                ),
            )
            .limit(1)
        )
        return (await self.session.scalar(stmt)) is not None
