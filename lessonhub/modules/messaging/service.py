"""Messaging history collaborator consulted by booking rules."""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from lessonhub.modules.messaging.repository import MessagingRepository


class MessagingHistory(Protocol):
    """Contract for checking whether two users have talked before."""

    async def has_prior_contact(self, student_id: UUID, teacher_id: UUID) -> bool:
        """Return True if either side has messaged the other."""


class MessagingHistoryService:
    """Message-table backed contact history."""

    def __init__(self, repository: MessagingRepository) -> None:
        self.repository = repository

    async def has_prior_contact(self, student_id: UUID, teacher_id: UUID) -> bool:
        return await self.repository.has_message_between(student_id, teacher_id)
