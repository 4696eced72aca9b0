"""
Shared Pydantic schemas used by the REST routers.

Request bodies use the camelCase keys the clients send; ``model_dump(
by_alias=True, exclude_unset=True)`` yields exactly the keys DataStore
accepts.
"""

from datetime import datetime
from typing import ClassVar, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from shared.config.constants import Limits


# =============================================================================
# Common Types
# =============================================================================

TaskStatusLiteral = Literal["pending", "in-progress", "completed"]
TaskPriorityLiteral = Literal["low", "medium", "high"]
MessageTypeLiteral = Literal["text", "image", "file"]


class WireModel(BaseModel):
    """
    Accepts both the camelCase alias and the field name.

    Keys listed in ``NOT_NULL`` are dropped from ``to_wire()`` when the
    client sends an explicit null, so a partial update leaves those
    columns unchanged.
    """

    model_config = ConfigDict(populate_by_name=True)

    NOT_NULL: ClassVar[frozenset[str]] = frozenset()

    def to_wire(self) -> dict:
        data = self.model_dump(by_alias=True, exclude_unset=True)
        return {k: v for k, v in data.items() if v is not None or k not in self.NOT_NULL}


# =============================================================================
# Message Schemas
# =============================================================================


class MessageCreate(WireModel):
    """POST /api/messages body. Blank bodies are rejected by the router."""

    to: str = Field(min_length=1, max_length=64)
    message: str = Field(max_length=Limits.MAX_MESSAGE_LENGTH)
    type: MessageTypeLiteral = "text"


# =============================================================================
# Task Schemas
# =============================================================================


class TaskCreate(WireModel):
    title: str = Field(min_length=1, max_length=Limits.MAX_TITLE_LENGTH)
    description: str | None = Field(default=None, max_length=Limits.MAX_DESCRIPTION_LENGTH)
    assigned_to: str = Field(alias="assignedTo", min_length=1)
    status: TaskStatusLiteral = "pending"
    priority: TaskPriorityLiteral = "medium"
    due_date: datetime | None = Field(default=None, alias="dueDate")


class TaskUpdate(WireModel):
    """
    PUT /api/tasks/{id} body. Every field optional; employees may only
    send ``status``.
    """

    NOT_NULL = frozenset({"title", "assignedTo", "status", "priority"})

    title: str | None = Field(default=None, min_length=1, max_length=Limits.MAX_TITLE_LENGTH)
    description: str | None = Field(default=None, max_length=Limits.MAX_DESCRIPTION_LENGTH)
    assigned_to: str | None = Field(default=None, alias="assignedTo", min_length=1)
    status: TaskStatusLiteral | None = None
    priority: TaskPriorityLiteral | None = None
    due_date: datetime | None = Field(default=None, alias="dueDate")


class TaskStatusUpdate(BaseModel):
    # Plain str so an unknown status gets the 400 with the allowed values
    status: str


# =============================================================================
# Employee Schemas
# =============================================================================


class EmployeeCreate(WireModel):
    name: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    email: EmailStr
    department: str | None = Field(default=None, max_length=120)
    phone_number: str | None = Field(default=None, alias="phoneNumber", max_length=32)
    role: str | None = Field(default=None, max_length=60)  # Job title


class EmployeeUpdate(WireModel):
    NOT_NULL = frozenset({"name", "email", "role"})

    name: str | None = Field(default=None, min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    email: EmailStr | None = None
    department: str | None = Field(default=None, max_length=120)
    phone_number: str | None = Field(default=None, alias="phoneNumber", max_length=32)
    role: str | None = Field(default=None, max_length=60)
