"""
Security module: token signing and verification, request authentication.
"""

from shared.security.auth import (
    AuthUser,
    sign_jwt,
    issue_owner_token,
    issue_employee_token,
    verify_jwt,
    extract_bearer_token,
    get_current_user,
    require_owner,
    require_employee,
)

__all__ = [
    "AuthUser",
    "sign_jwt",
    "issue_owner_token",
    "issue_employee_token",
    "verify_jwt",
    "extract_bearer_token",
    "get_current_user",
    "require_owner",
    "require_employee",
]
