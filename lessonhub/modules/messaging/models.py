"""Messaging ORM models."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from lessonhub.core.database import Base, BaseModelMixin


class Message(BaseModelMixin, Base):
    """Direct message written by the chat service; read here for contact history."""

    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_sender_id_recipient_id", "sender_id", "recipient_id"),
    )

    sender_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    recipient_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    body: Mapped[str] = mapped_column(Text, default="", nullable=False)
