"""
WebSocket Connection Manager.

Thin facade composing the gateway's connection components:
- ConnectionRegistry: user -> live connection and role (last writer wins)
- RoomManager: private and pairwise chat channel membership
- ConnectionSender: frame delivery that never raises into callers

One instance is built per application (see ws_gateway.main.create_app)
and passed by reference to the endpoint and the EventRouter.
"""

from __future__ import annotations

import asyncio
from typing import Any, TYPE_CHECKING

from shared.config.logging import get_logger
from shared.config.settings import settings
from ws_gateway.components.connection.registry import ConnectionRegistry
from ws_gateway.components.connection.rooms import RoomManager, private_channel
from ws_gateway.components.connection.sender import ConnectionSender, is_ws_connected
from ws_gateway.components.core.constants import WSCloseCode
from ws_gateway.components.events.types import OutboundEvent, build_frame

if TYPE_CHECKING:
    from fastapi import WebSocket

logger = get_logger(__name__)

__all__ = ["ConnectionManager", "is_ws_connected"]


class ConnectionManager:
    """
    Tracks live WebSocket connections and delivers frames to them.

    All state lives on the event loop; mutations happen between awaits, so
    no locks are needed.
    """

    def __init__(
        self,
        registry: ConnectionRegistry | None = None,
        sender: ConnectionSender | None = None,
        accept_timeout: float | None = None,
    ) -> None:
        self._registry = registry if registry is not None else ConnectionRegistry(RoomManager())
        self._sender = sender if sender is not None else ConnectionSender()
        self._accept_timeout = accept_timeout if accept_timeout is not None else settings.ws_accept_timeout
        self._shutdown = False
        self._total_accepted = 0

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    @property
    def rooms(self) -> RoomManager:
        return self._registry.rooms

    @property
    def is_shutting_down(self) -> bool:
        return self._shutdown

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def connect(self, websocket: "WebSocket", user_id: str, role: str) -> None:
        """
        Accept an authenticated WebSocket and register it.

        Raises:
            ConnectionError: If shutting down or the accept fails.
        """
        if self._shutdown:
            raise ConnectionError("Server is shutting down")

        try:
            await asyncio.wait_for(websocket.accept(), timeout=self._accept_timeout)
        except asyncio.TimeoutError:
            raise ConnectionError("WebSocket accept timed out")
        except Exception as e:
            raise ConnectionError(f"WebSocket accept failed: {e}") from e

        self._registry.register(user_id, role, websocket)
        self._total_accepted += 1

    async def disconnect(self, websocket: "WebSocket", user_id: str) -> bool:
        """
        Forget a connection. Safe for sockets that were already replaced.

        Returns:
            True if the user's registry entry was removed.
        """
        return self._registry.unregister(user_id, websocket)

    def join_chat(self, websocket: "WebSocket", other_user_id: str | None) -> str:
        """
        Join the pairwise channel between the connection's user and
        ``other_user_id``.

        Raises:
            ConnectionError: The socket is not registered.
            InvalidEventPayload: ``other_user_id`` is missing.
        """
        user_id = self._registry.user_of(websocket)
        if user_id is None:
            raise ConnectionError("Connection is not registered")
        return self.rooms.join_chat(websocket, user_id, other_user_id)

    # =========================================================================
    # Delivery
    # =========================================================================

    async def send_to_connection(
        self,
        websocket: "WebSocket",
        event: OutboundEvent | str,
        data: dict[str, Any] | None = None,
    ) -> bool:
        """Send to one specific socket (acks, local errors)."""
        return await self._sender.send(websocket, build_frame(event, data))

    async def emit_to_channel(
        self,
        channel: str,
        event: OutboundEvent | str,
        data: dict[str, Any] | None = None,
    ) -> int:
        """Send to every member of a channel. Returns deliveries."""
        members = self.rooms.members(channel)
        return await self._sender.send_many(members, build_frame(event, data))

    async def send_to_user(
        self,
        user_id: str,
        event: OutboundEvent | str,
        data: dict[str, Any] | None = None,
    ) -> bool:
        """
        Send through the user's private channel.

        Returns False, without error, when the user is offline.
        """
        if not self._registry.is_online(user_id):
            return False
        return await self.emit_to_channel(private_channel(user_id), event, data) > 0

    async def send_to_role(
        self,
        role: str,
        event: OutboundEvent | str,
        data: dict[str, Any] | None = None,
    ) -> int:
        """Send to the current connection of every online user with ``role``."""
        connections = self._registry.connections_with_role(role)
        return await self._sender.send_many(connections, build_frame(event, data))

    # =========================================================================
    # Shutdown / stats
    # =========================================================================

    async def shutdown(self) -> int:
        """Close every live connection with 1001 and clear the registry."""
        self._shutdown = True
        logger.info("WebSocket manager shutting down")

        connections = self._registry.all_connections()

        async def close_one(ws: "WebSocket") -> bool:
            try:
                await ws.close(code=WSCloseCode.GOING_AWAY, reason="Server shutdown")
                return True
            except Exception as e:
                logger.debug("Close during shutdown failed", error=str(e))
                return False

        results = await asyncio.gather(*(close_one(ws) for ws in connections))
        for ws in connections:
            user_id = self._registry.user_of(ws)
            if user_id is not None:
                self._registry.unregister(user_id, ws)

        closed = sum(1 for ok in results if ok)
        logger.info("WebSocket shutdown complete", closed=closed)
        return closed

    def get_stats(self) -> dict[str, Any]:
        return {
            **self._registry.get_stats(),
            **self.rooms.get_stats(),
            **self._sender.get_stats(),
            "total_accepted": self._total_accepted,
            "shutting_down": self._shutdown,
        }
