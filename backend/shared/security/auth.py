"""
Authentication and authorization utilities.

Owners and employees authenticate with HS256 JWTs carrying the user id
(``sub``) and role (``role``). The same token authenticates REST calls
(Authorization header) and the WebSocket handshake.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import Any

import jwt
from fastapi import Depends, HTTPException, Header, status

from shared.config.constants import Roles, TokenType
from shared.config.logging import get_logger
from shared.config.settings import settings

logger = get_logger(__name__)


# =============================================================================
# JWT Functions
# =============================================================================


def sign_jwt(
    user_id: str,
    role: str,
    ttl_seconds: int | None = None,
    **claims: Any,
) -> str:
    """
    Sign an access token.

    Args:
        user_id: Owner or employee ID (stored as ``sub``).
        role: "owner" or "employee".
        ttl_seconds: Token lifetime. Defaults to the configured access expiry.
        **claims: Extra claims (phoneNumber, email, type, ...).

    Returns:
        Signed JWT token string.
    """
    if ttl_seconds is None:
        ttl_seconds = settings.jwt_access_token_expire_minutes * 60

    now = int(time.time())
    data = {
        **claims,
        "sub": str(user_id),
        "role": role,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + ttl_seconds,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(data, settings.jwt_secret, algorithm="HS256")


def issue_owner_token(owner_id: str, phone_number: str | None = None) -> str:
    """Access token for an owner session."""
    return sign_jwt(owner_id, Roles.OWNER, phoneNumber=phone_number, type=TokenType.OWNER_AUTH)


def issue_employee_token(employee_id: str, email: str | None = None) -> str:
    """Access token for an employee session."""
    return sign_jwt(employee_id, Roles.EMPLOYEE, email=email, type=TokenType.EMPLOYEE_AUTH)


def verify_jwt(token: str) -> dict[str, Any]:
    """
    Verify and decode a JWT token.

    Args:
        token: The JWT token string.

    Returns:
        Decoded token claims.

    Raises:
        HTTPException: If token is invalid, expired, or missing required claims.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except jwt.InvalidTokenError as e:
        # Real reason goes to the log only
        logger.warning("JWT validation failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing subject claim",
        )
    if not payload.get("role"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing role claim",
        )

    return payload


# =============================================================================
# FastAPI dependencies
# =============================================================================


@dataclass(frozen=True, slots=True)
class AuthUser:
    """Authenticated caller extracted from a verified token."""

    user_id: str
    role: str
    claims: dict[str, Any]

    @property
    def is_owner(self) -> bool:
        return self.role == Roles.OWNER

    @property
    def is_employee(self) -> bool:
        return self.role == Roles.EMPLOYEE


def extract_bearer_token(authorization: str | None) -> str | None:
    """
    Return the token from an ``Authorization: Bearer <token>`` value.

    Returns None when the header is absent or not a bearer header.
    """
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_user(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> AuthUser:
    """
    FastAPI dependency returning the authenticated caller.

    Usage:
        @router.get("/protected")
        async def protected(user: AuthUser = Depends(get_current_user)):
            ...
    """
    token = extract_bearer_token(authorization)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or malformed Authorization header. Expected: Bearer <token>",
        )
    payload = verify_jwt(token)
    if payload["role"] not in Roles.ALL:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unknown role",
        )
    return AuthUser(user_id=str(payload["sub"]), role=payload["role"], claims=payload)


def require_owner(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    """Dependency: caller must be an owner."""
    if not user.is_owner:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Owner access required",
        )
    return user


def require_employee(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    """Dependency: caller must be an employee."""
    if not user.is_employee:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Employee access required",
        )
    return user
