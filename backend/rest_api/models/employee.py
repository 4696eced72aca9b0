"""
Employee accounts.
"""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, isoformat, new_id


class Employee(TimestampMixin, Base):
    """
    A staff member managed by an owner.

    Deleting an employee only clears ``is_active``; their tasks and
    messages stay readable.
    """

    __tablename__ = "employee"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    department: Mapped[Optional[str]] = mapped_column(String(120))
    phone_number: Mapped[Optional[str]] = mapped_column(String(32))
    # Job title shown in the UI, not the auth role
    position: Mapped[str] = mapped_column(String(60), default="Employee", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    created_by: Mapped[Optional[str]] = mapped_column(
        String(32), ForeignKey("owner.id"), nullable=True, index=True
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "department": self.department,
            "phoneNumber": self.phone_number,
            "role": self.position,
            "isActive": self.is_active,
            "createdBy": self.created_by,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
