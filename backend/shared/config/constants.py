"""
Centralized constants for the backend application.
Avoids magic strings shared between the REST layer and the gateway.

Usage:
    from shared.config.constants import Roles, TaskStatus

    if role == Roles.OWNER:
        ...

    if status not in TaskStatus.ALL:
        ...
"""

from typing import Final


# =============================================================================
# User Roles
# =============================================================================


class Roles:
    """User role constants (the ``role`` claim of access tokens)."""

    OWNER: Final[str] = "owner"
    EMPLOYEE: Final[str] = "employee"

    ALL: Final[frozenset[str]] = frozenset({OWNER, EMPLOYEE})


class TokenType:
    """Values of the ``type`` claim."""

    OWNER_AUTH: Final[str] = "owner-auth"
    EMPLOYEE_AUTH: Final[str] = "employee-auth"


# =============================================================================
# Entity Status Constants
# =============================================================================


class TaskStatus:
    """Task status constants."""

    PENDING: Final[str] = "pending"
    IN_PROGRESS: Final[str] = "in-progress"
    COMPLETED: Final[str] = "completed"

    ALL: Final[tuple[str, ...]] = (PENDING, IN_PROGRESS, COMPLETED)


class TaskPriority:
    """Task priority constants."""

    LOW: Final[str] = "low"
    MEDIUM: Final[str] = "medium"
    HIGH: Final[str] = "high"

    ALL: Final[tuple[str, ...]] = (LOW, MEDIUM, HIGH)


class MessageType:
    """Chat message content types."""

    TEXT: Final[str] = "text"
    IMAGE: Final[str] = "image"
    FILE: Final[str] = "file"

    ALL: Final[tuple[str, ...]] = (TEXT, IMAGE, FILE)


class Collections:
    """Logical collection names accepted by ``DataStore.find_by_id``."""

    OWNERS: Final[str] = "owners"
    EMPLOYEES: Final[str] = "employees"
    TASKS: Final[str] = "tasks"
    MESSAGES: Final[str] = "messages"


# =============================================================================
# Validation Limits
# =============================================================================


class Limits:
    """Input size limits."""

    MAX_MESSAGE_LENGTH: Final[int] = 4000
    MAX_TITLE_LENGTH: Final[int] = 200
    MAX_DESCRIPTION_LENGTH: Final[int] = 5000
    MAX_NAME_LENGTH: Final[int] = 120
