"""
Heartbeat handling.

Clients send "ping" (or {"type":"ping"}) every 30 seconds; the gateway
answers {"type":"pong"}. Any received frame resets the receive timeout in
the endpoint's message loop, so no separate tracker is needed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from shared.config.logging import get_logger
from ws_gateway.components.core.constants import (
    MSG_PING_JSON,
    MSG_PING_PLAIN,
    MSG_PONG_JSON,
)

if TYPE_CHECKING:
    from fastapi import WebSocket

logger = get_logger(__name__)


def is_heartbeat(data: str) -> bool:
    return data == MSG_PING_PLAIN or data == MSG_PING_JSON


async def handle_heartbeat(ws: "WebSocket", data: str) -> bool:
    """
    Answer a ping with a pong.

    Returns:
        True if the frame was a heartbeat (handled), False otherwise.
    """
    if not is_heartbeat(data):
        return False

    try:
        await ws.send_text(MSG_PONG_JSON)
    except (ConnectionError, RuntimeError, OSError) as e:
        # Socket closed under us; the message loop will see the disconnect
        logger.debug("Could not answer heartbeat", error=type(e).__name__)
    return True
