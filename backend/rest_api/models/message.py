"""
Chat messages between an owner and an employee (or any two users).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from shared.config.constants import MessageType

from .base import Base, isoformat, new_id, utcnow


class Message(Base):
    """
    A persisted chat message.

    ``participants`` always holds exactly [from_user_id, to_user_id] so a
    conversation can be fetched by a single membership test.
    """

    __tablename__ = "message"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    from_user_id: Mapped[str] = mapped_column(String(32), nullable=False)
    to_user_id: Mapped[str] = mapped_column(String(32), nullable=False)
    participants: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), default=MessageType.TEXT, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )

    __table_args__ = (
        Index("ix_message_pair", "from_user_id", "to_user_id"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.participants = [self.from_user_id, self.to_user_id]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "from": self.from_user_id,
            "to": self.to_user_id,
            "participants": list(self.participants),
            "message": self.text,
            "type": self.type,
            "timestamp": isoformat(self.timestamp),
        }

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, from={self.from_user_id}, to={self.to_user_id})>"
