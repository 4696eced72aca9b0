"""
WebSocket Gateway Constants.

Close codes, timeouts and heartbeat frames shared by the endpoint and the
connection manager.
"""

from enum import IntEnum
from typing import Final

__all__ = [
    "WSCloseCode",
    "WSConstants",
    "MSG_PING_PLAIN",
    "MSG_PING_JSON",
    "MSG_PONG_JSON",
    "DEFAULT_ALLOWED_ORIGINS",
    "parse_allowed_origins",
]


class WSCloseCode(IntEnum):
    """
    WebSocket close codes used by the gateway.

    Standard codes (1000-1999) from RFC 6455.
    Custom codes (4000-4999) for application-specific errors.
    """

    # Standard codes (RFC 6455)
    NORMAL = 1000  # Normal closure
    GOING_AWAY = 1001  # Server shutting down or client navigating away
    UNSUPPORTED_DATA = 1003  # Binary frame on a text-only socket
    POLICY_VIOLATION = 1008  # Generic policy violation
    MESSAGE_TOO_BIG = 1009  # Frame larger than ws_max_message_size
    SERVER_ERROR = 1011  # Unexpected server error

    # Custom application codes (4000-4999)
    AUTH_FAILED = 4001  # Missing, invalid or expired token
    FORBIDDEN = 4003  # Valid token but role not allowed on this endpoint


class WSConstants:
    """
    WebSocket Gateway operational defaults.

    Runtime values come from ``shared.config.settings`` where a setting
    exists; these are the fallbacks.
    """

    # 3x the client heartbeat interval (30s), so a single missed ping
    # does not drop the connection
    WS_RECEIVE_TIMEOUT: Final[float] = 90.0

    WS_ACCEPT_TIMEOUT: Final[float] = 5.0

    # Upper bound for a single send; a stuck client must not block fan-out
    WS_SEND_TIMEOUT: Final[float] = 5.0

    MAX_MESSAGE_SIZE: Final[int] = 64 * 1024

    # Cap on user-provided text echoed into logs
    LOG_PREVIEW_LENGTH: Final[int] = 80


# Heartbeat frames
MSG_PING_PLAIN: Final[str] = "ping"
MSG_PING_JSON: Final[str] = '{"type":"ping"}'
MSG_PONG_JSON: Final[str] = '{"type":"pong"}'


# Development origins used when ALLOWED_ORIGINS is empty
DEFAULT_ALLOWED_ORIGINS: Final[tuple[str, ...]] = (
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
)


def parse_allowed_origins(value: str | None) -> list[str]:
    """Split the comma-separated ALLOWED_ORIGINS setting."""
    if not value:
        return list(DEFAULT_ALLOWED_ORIGINS)
    return [o.strip() for o in value.split(",") if o.strip()]
