"""
Utilities module: exceptions.
"""

from shared.utils.exceptions import (
    AppException,
    NotFoundError,
    ForbiddenError,
    ValidationError,
    ConflictError,
    PersistenceError,
    InvalidEventPayload,
)

__all__ = [
    "AppException",
    "NotFoundError",
    "ForbiddenError",
    "ValidationError",
    "ConflictError",
    "PersistenceError",
    "InvalidEventPayload",
]
