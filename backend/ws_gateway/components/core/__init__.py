"""
Core components: constants and per-connection context.
"""

from ws_gateway.components.core.constants import (
    WSCloseCode,
    WSConstants,
    MSG_PING_PLAIN,
    MSG_PING_JSON,
    MSG_PONG_JSON,
    DEFAULT_ALLOWED_ORIGINS,
    parse_allowed_origins,
)
from ws_gateway.components.core.context import ConnectionContext, sanitize_log_data

__all__ = [
    "WSCloseCode",
    "WSConstants",
    "MSG_PING_PLAIN",
    "MSG_PING_JSON",
    "MSG_PONG_JSON",
    "DEFAULT_ALLOWED_ORIGINS",
    "parse_allowed_origins",
    "ConnectionContext",
    "sanitize_log_data",
]
