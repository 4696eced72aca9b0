"""
Owner (manager) accounts.
"""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, isoformat, new_id


class Owner(TimestampMixin, Base):
    """
    A manager who creates employees and assigns tasks.
    Owners log in by phone number (the login flow itself lives elsewhere).
    """

    __tablename__ = "owner"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[Optional[str]] = mapped_column(String(120))
    phone_number: Mapped[Optional[str]] = mapped_column(String(32), unique=True, index=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "phoneNumber": self.phone_number,
            "role": "owner",
            "createdAt": isoformat(self.created_at),
        }
