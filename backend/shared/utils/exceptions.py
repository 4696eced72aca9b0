"""
Centralized exceptions for consistent error handling.

HTTP errors derive from AppException (an HTTPException that logs itself on
construction). Gateway/domain errors are plain exceptions that the socket
layer converts into error events for the originating connection.

Usage:
    from shared.utils.exceptions import NotFoundError, ForbiddenError

    raise NotFoundError("Task", task_id)
    raise ForbiddenError("delete this message", user_id=user_id)
"""

from fastapi import HTTPException, status
from typing import Any

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base HTTP exception with automatic logging.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Employee", employee_id)
    """

    def __init__(self, entity: str, entity_id: str | None = None, **log_context: Any):
        if entity_id is not None:
            detail = f"{entity} {entity_id} not found"
        else:
            detail = f"{entity} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


# =============================================================================
# 403 Forbidden Errors
# =============================================================================


class ForbiddenError(AppException):
    """
    Authorization/permission error (403).

    Usage:
        raise ForbiddenError("update this task", user_id=user_id)
    """

    def __init__(self, action: str | None = None, **log_context: Any):
        detail = f"Not allowed to {action}" if action else "Access denied"

        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            action=action,
            **log_context,
        )


# =============================================================================
# 400 / 409 Errors
# =============================================================================


class ValidationError(AppException):
    """
    Business validation error (400).

    Usage:
        raise ValidationError("Invalid status. Must be one of: pending, in-progress, completed")
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            **log_context,
        )


class ConflictError(AppException):
    """
    Resource conflict (409).

    Usage:
        raise ConflictError("Employee with this email already exists")
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            **log_context,
        )


# =============================================================================
# Gateway / domain errors (not HTTP)
# =============================================================================


class PersistenceError(Exception):
    """
    The data store failed while handling an event.

    Raised by DataStore with the driver exception chained as ``__cause__``.
    """

    def __init__(self, operation: str, detail: str | None = None):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed" + (f": {detail}" if detail else ""))


class InvalidEventPayload(ValueError):
    """
    An inbound socket event is malformed (missing recipient, empty body, ...).

    Answered with an error event to the sender; nothing is persisted.
    """

    def __init__(self, event: str, reason: str):
        self.event = event
        self.reason = reason
        super().__init__(f"{event}: {reason}")
