"""
Per-connection context.

Carries the identity the authenticator attached to a socket (user id and
role) plus the metadata needed for audit logging.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from fastapi import WebSocket


# Control characters and bidi overrides stripped from logged user input
_CONTROL_CHAR_PATTERN = re.compile(
    r'[\x00-\x1f\x7f-\x9f'
    r'\u200b-\u200f'
    r'\u202a-\u202e'
    r'\u2066-\u2069'
    r'\ufeff]'
)


def sanitize_log_data(data: Any, max_length: int = 100) -> str:
    """
    Make user-provided data safe to put in a log line.

    Truncates first, then strips control characters and escapes quotes and
    backslashes.
    """
    text = data if isinstance(data, str) else repr(data)
    truncated = text[:max_length]

    sanitized = _CONTROL_CHAR_PATTERN.sub('', truncated)
    sanitized = sanitized.replace('\\', '\\\\').replace('"', '\\"')

    if len(text) > max_length:
        return sanitized + "..."
    return sanitized


@dataclass
class ConnectionContext:
    """
    Identity and metadata of one authenticated connection.

    Usage:
        ctx = ConnectionContext.from_claims(websocket, claims, "/ws")
        ctx.audit("CONNECT")
        # ... later
        ctx.audit("DISCONNECT", reason="client_disconnect")
    """

    websocket: "WebSocket"
    user_id: str
    role: str
    endpoint: str = "/ws"
    origin: str | None = None
    claims: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_claims(
        cls,
        websocket: "WebSocket",
        claims: dict[str, Any],
        endpoint: str,
    ) -> "ConnectionContext":
        """Build a context from verified token claims (``sub`` and ``role``)."""
        return cls(
            websocket=websocket,
            user_id=str(claims["sub"]),
            role=str(claims["role"]),
            endpoint=endpoint,
            origin=websocket.headers.get("origin"),
            claims=claims,
        )

    def audit(self, event_type: str, **extra: Any) -> None:
        """Write a security audit line for this connection."""
        from shared.config.logging import audit_ws_connection

        audit_ws_connection(
            event_type,
            self.endpoint,
            user_id=self.user_id,
            role=self.role,
            origin=self.origin,
            **extra,
        )

    @property
    def identifier(self) -> str:
        return f"{self.role}:{self.user_id}"
