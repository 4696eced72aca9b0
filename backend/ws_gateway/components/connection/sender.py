"""
Frame delivery to live connections.

Sending never raises into callers: a closed or failing socket is logged
and reported as not delivered. Cleanup of the registry happens when that
socket's own endpoint loop sees the disconnect.
"""

from __future__ import annotations

import asyncio
from typing import Any, Iterable, TYPE_CHECKING

from starlette.websockets import WebSocketState

from shared.config.logging import get_logger
from ws_gateway.components.core.constants import WSConstants

if TYPE_CHECKING:
    from fastapi import WebSocket

logger = get_logger(__name__)


def is_ws_connected(ws: "WebSocket") -> bool:
    """
    Check if a WebSocket is connected on both sides before sending.

    Starlette does not expose transitional states, so a socket may still
    look connected briefly after the peer started closing.
    """
    return (
        ws.client_state == WebSocketState.CONNECTED
        and ws.application_state == WebSocketState.CONNECTED
    )


class ConnectionSender:
    """
    Sends JSON frames to one or many connections.

    Fan-out sends run concurrently so one slow client does not delay the
    others; each send is bounded by ``send_timeout``.
    """

    def __init__(self, send_timeout: float = WSConstants.WS_SEND_TIMEOUT) -> None:
        self._send_timeout = send_timeout
        self._sent = 0
        self._failed = 0

    async def send(self, ws: "WebSocket", frame: dict[str, Any]) -> bool:
        """Send one frame. Returns True if it was handed to the socket."""
        if not is_ws_connected(ws):
            self._failed += 1
            logger.debug("Skipping send to closed connection", event=frame.get("event"))
            return False
        try:
            await asyncio.wait_for(ws.send_json(frame), timeout=self._send_timeout)
        except asyncio.TimeoutError:
            self._failed += 1
            logger.warning("Send timed out", event=frame.get("event"), timeout=self._send_timeout)
            return False
        except Exception as e:
            self._failed += 1
            logger.debug("Send failed", event=frame.get("event"), error=str(e))
            return False
        self._sent += 1
        return True

    async def send_many(self, connections: Iterable["WebSocket"], frame: dict[str, Any]) -> int:
        """Send the same frame to every connection. Returns how many succeeded."""
        targets = list(connections)
        if not targets:
            return 0
        if len(targets) == 1:
            return int(await self.send(targets[0], frame))
        results = await asyncio.gather(*(self.send(ws, frame) for ws in targets))
        return sum(1 for ok in results if ok)

    def get_stats(self) -> dict[str, int]:
        return {"frames_sent": self._sent, "frames_failed": self._failed}
