"""
Authentication Strategies for the WebSocket Gateway.

A strategy runs once per connection attempt, before the socket is
accepted. On failure nothing is registered: the endpoint closes the
handshake with the result's close code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

from fastapi import HTTPException

from shared.config.constants import Roles
from shared.config.logging import get_logger
from shared.security.auth import extract_bearer_token
from ws_gateway.components.core.constants import WSCloseCode, parse_allowed_origins

if TYPE_CHECKING:
    from fastapi import WebSocket


logger = get_logger(__name__)


# =============================================================================
# Result Types
# =============================================================================


@dataclass(frozen=True, slots=True)
class AuthResult:
    """
    Result of an authentication attempt.

    Attributes:
        success: Whether authentication succeeded.
        data: Verified token claims if successful.
        error_message: Human-readable error message if failed.
        close_code: WebSocket close code to use if failed.
        audit_reason: Short reason code for audit logging.
    """

    success: bool
    data: dict[str, Any] | None = None
    error_message: str | None = None
    close_code: int = WSCloseCode.AUTH_FAILED
    audit_reason: str | None = None

    @classmethod
    def ok(cls, data: dict[str, Any]) -> "AuthResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls,
        message: str,
        close_code: int = WSCloseCode.AUTH_FAILED,
        audit_reason: str = "auth_failed",
    ) -> "AuthResult":
        return cls(
            success=False,
            error_message=message,
            close_code=close_code,
            audit_reason=audit_reason,
        )

    @classmethod
    def forbidden(cls, message: str, audit_reason: str = "forbidden") -> "AuthResult":
        return cls(
            success=False,
            error_message=message,
            close_code=WSCloseCode.FORBIDDEN,
            audit_reason=audit_reason,
        )


# =============================================================================
# Strategy Interface
# =============================================================================


class AuthStrategy(ABC):
    """
    Abstract base class for authentication strategies.

    Usage:
        strategy = JWTAuthStrategy()
        result = await strategy.authenticate(websocket, token)
        if result.success:
            claims = result.data
    """

    @abstractmethod
    async def authenticate(
        self,
        websocket: "WebSocket",
        token: str | None,
    ) -> AuthResult:
        """
        Authenticate a connection attempt.

        Args:
            websocket: The not-yet-accepted WebSocket (for headers).
            token: Token taken from the handshake, or None if absent.
        """


def extract_handshake_token(websocket: "WebSocket", query_token: str | None) -> str | None:
    """
    Token carried out-of-band in the handshake.

    The ``token`` query parameter wins; browsers cannot set headers on a
    WebSocket, but other clients may send ``Authorization: Bearer``.
    """
    if query_token and query_token.strip():
        return query_token.strip()
    return extract_bearer_token(websocket.headers.get("authorization"))


# =============================================================================
# Origin Validation Mixin
# =============================================================================


class OriginValidationMixin:
    """Checks the Origin header against ALLOWED_ORIGINS."""

    def validate_origin(self, websocket: "WebSocket") -> bool:
        from shared.config.settings import settings

        origin = websocket.headers.get("origin")
        if not origin:
            # Non-browser clients (CLI tools, tests) send no Origin
            return settings.environment != "production"
        return origin in parse_allowed_origins(settings.allowed_origins)


# =============================================================================
# JWT Authentication Strategy
# =============================================================================


class JWTAuthStrategy(AuthStrategy, OriginValidationMixin):
    """
    JWT authentication for owners and employees.

    Checks, in order:
    - token present (no signature work for an empty handshake)
    - origin allowed
    - signature, expiry, issuer, audience
    - ``role`` claim is one of ``allowed_roles``
    """

    def __init__(self, allowed_roles: frozenset[str] = Roles.ALL) -> None:
        self._allowed_roles = allowed_roles

    @property
    def allowed_roles(self) -> frozenset[str]:
        return self._allowed_roles

    async def authenticate(
        self,
        websocket: "WebSocket",
        token: str | None,
    ) -> AuthResult:
        from shared.security.auth import verify_jwt

        if not token:
            return AuthResult.fail(
                "Authentication error: missing token",
                audit_reason="missing_token",
            )

        if not self.validate_origin(websocket):
            logger.warning(
                "JWT auth rejected - invalid origin",
                origin=websocket.headers.get("origin"),
            )
            return AuthResult.forbidden("Origin not allowed", audit_reason="invalid_origin")

        try:
            claims = verify_jwt(token)
        except HTTPException as e:
            logger.warning("JWT validation failed", error=str(e.detail))
            return AuthResult.fail(
                "Authentication error: invalid token",
                audit_reason="invalid_token",
            )

        if claims.get("role") not in self._allowed_roles:
            logger.warning(
                "JWT auth rejected - role not allowed",
                user_id=claims.get("sub"),
                role=claims.get("role"),
            )
            return AuthResult.forbidden("Access denied", audit_reason="forbidden_role")

        return AuthResult.ok(claims)


class NullAuthStrategy(AuthStrategy):
    """
    Strategy that accepts or rejects everything. For tests.
    """

    def __init__(
        self,
        always_succeed: bool = True,
        mock_data: dict[str, Any] | None = None,
    ) -> None:
        self._always_succeed = always_succeed
        self._mock_data = mock_data or {"sub": "test-user", "role": Roles.EMPLOYEE}

    async def authenticate(
        self,
        websocket: "WebSocket",
        token: str | None,
    ) -> AuthResult:
        if self._always_succeed:
            return AuthResult.ok(self._mock_data)
        return AuthResult.fail("Authentication disabled", audit_reason="null_strategy")
