"""
Tasks assigned by owners to employees.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from shared.config.constants import TaskPriority, TaskStatus

from .base import Base, TimestampMixin, isoformat, new_id


class Task(TimestampMixin, Base):
    """
    A unit of work. Notifications about a task go to both its assignee
    and its creator.
    """

    __tablename__ = "task"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    assigned_to: Mapped[str] = mapped_column(
        String(32), ForeignKey("employee.id"), nullable=False, index=True
    )
    # Owner ID, or the employee ID when a task is self-assigned
    created_by: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), default=TaskStatus.PENDING, nullable=False)
    priority: Mapped[str] = mapped_column(String(10), default=TaskPriority.MEDIUM, nullable=False)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "assignedTo": self.assigned_to,
            "createdBy": self.created_by,
            "status": self.status,
            "priority": self.priority,
            "dueDate": isoformat(self.due_date),
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
