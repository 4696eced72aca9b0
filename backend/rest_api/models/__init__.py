"""
SQLAlchemy ORM Models Package.

- base: Base class, TimestampMixin, id/time helpers
- owner: Owner
- employee: Employee
- task: Task
- message: Message
"""

from .base import Base, TimestampMixin, new_id, utcnow
from .owner import Owner
from .employee import Employee
from .task import Task
from .message import Message

__all__ = [
    "Base",
    "TimestampMixin",
    "new_id",
    "utcnow",
    "Owner",
    "Employee",
    "Task",
    "Message",
]
