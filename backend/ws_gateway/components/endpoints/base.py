"""
WebSocket Endpoint Base Class.

Runs the lifecycle shared by every gateway endpoint:

1. validate_auth: authenticate the handshake (close 4001/4003 on failure,
   before accept, so no registry or room state is created)
2. create_context: build the ConnectionContext from verified claims
3. connect: accept and register with the ConnectionManager
4. _message_loop: receive, heartbeat, size check, JSON decode, dispatch
5. finally: unregister and audit the disconnect
"""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from fastapi import WebSocket, WebSocketDisconnect

from shared.config.logging import get_logger
from shared.config.settings import settings
from ws_gateway.components.auth.strategies import (
    AuthStrategy,
    JWTAuthStrategy,
    extract_handshake_token,
)
from ws_gateway.components.connection.heartbeat import handle_heartbeat
from ws_gateway.components.core.constants import WSCloseCode, WSConstants
from ws_gateway.components.core.context import ConnectionContext, sanitize_log_data
from ws_gateway.components.events.types import OutboundEvent

if TYPE_CHECKING:
    from ws_gateway.connection_manager import ConnectionManager

logger = get_logger(__name__)


class WebSocketEndpointBase(ABC):
    """
    Base class for WebSocket endpoints.

    Subclasses implement handle_event() for decoded
    ``{"event": ..., "data": ...}`` frames.

    Usage:
        endpoint = ChatEndpoint(websocket, manager, router, token)
        await endpoint.run()
    """

    def __init__(
        self,
        websocket: WebSocket,
        manager: "ConnectionManager",
        endpoint_name: str,
        token: str | None = None,
        auth_strategy: AuthStrategy | None = None,
        receive_timeout: float | None = None,
        max_message_size: int | None = None,
    ):
        """
        Args:
            websocket: The not-yet-accepted WebSocket.
            manager: ConnectionManager instance.
            endpoint_name: Name for logging (e.g. "/ws").
            token: Token from the ``token`` query parameter, if any.
            auth_strategy: Defaults to JWTAuthStrategy for owners and employees.
            receive_timeout: Idle timeout; defaults to settings.ws_receive_timeout.
            max_message_size: Frame cap in bytes; defaults to settings.ws_max_message_size.
        """
        self.websocket = websocket
        self.manager = manager
        self.endpoint_name = endpoint_name
        self.token = extract_handshake_token(websocket, token)
        self.auth_strategy = auth_strategy or JWTAuthStrategy()
        self.receive_timeout = (
            receive_timeout if receive_timeout is not None else settings.ws_receive_timeout
        )
        self.max_message_size = (
            max_message_size if max_message_size is not None else settings.ws_max_message_size
        )

        self.context: ConnectionContext | None = None
        self._is_running = False

    @abstractmethod
    async def handle_event(self, event: str, data: Any) -> None:
        """
        Handle one decoded client frame.

        Args:
            event: The frame's ``event`` name.
            data: The frame's ``data`` value (usually a dict).
        """

    async def validate_auth(self) -> dict[str, Any] | None:
        """
        Authenticate the handshake.

        Returns:
            Verified claims, or None after closing the socket.
        """
        from shared.config.logging import audit_ws_connection

        result = await self.auth_strategy.authenticate(self.websocket, self.token)
        if result.success:
            return result.data

        audit_ws_connection(
            event_type="AUTH_FAILED",
            endpoint=self.endpoint_name,
            origin=self.websocket.headers.get("origin"),
            reason=result.audit_reason,
        )
        try:
            await self.websocket.close(code=result.close_code, reason=result.error_message)
        except Exception as e:
            logger.debug("Close after failed auth raised", error=str(e))
        return None

    async def create_context(self, auth_data: dict[str, Any]) -> ConnectionContext:
        return ConnectionContext.from_claims(self.websocket, auth_data, self.endpoint_name)

    async def run(self) -> None:
        """Main entry point: the complete connection lifecycle."""
        auth_data = await self.validate_auth()
        if auth_data is None:
            return

        self.context = await self.create_context(auth_data)

        try:
            await self.manager.connect(self.websocket, self.context.user_id, self.context.role)
        except ConnectionError as e:
            logger.warning(
                "Connection rejected",
                endpoint=self.endpoint_name,
                identifier=self.context.identifier,
                reason=str(e),
            )
            return

        self.context.audit("CONNECT")
        logger.info("WebSocket connected", identifier=self.context.identifier)

        reason = "client_disconnect"
        self._is_running = True
        try:
            reason = await self._message_loop()
        except WebSocketDisconnect:
            reason = "client_disconnect"
        except RuntimeError as e:
            # Starlette raises RuntimeError on receive after the socket closed
            reason = "connection_closed"
            logger.debug("Receive on closed socket", identifier=self.context.identifier, error=str(e))
        finally:
            self._is_running = False
            await self.manager.disconnect(self.websocket, self.context.user_id)
            self.context.audit("DISCONNECT", reason=reason)
            logger.info(
                "WebSocket disconnected",
                identifier=self.context.identifier,
                reason=reason,
            )

    async def _message_loop(self) -> str:
        """
        Receive and dispatch frames until the connection ends.

        Returns:
            Why the loop stopped (for the DISCONNECT audit line).
        """
        while self._is_running:
            data = await self._receive_with_timeout()
            if data is None:
                logger.info(
                    "Connection timed out (no messages)",
                    identifier=self.context.identifier if self.context else "unknown",
                    timeout=self.receive_timeout,
                )
                await self.websocket.close(code=WSCloseCode.NORMAL, reason="Connection timeout")
                return "timeout"

            if isinstance(data, bytes):
                logger.warning(
                    "Binary frame rejected",
                    identifier=self.context.identifier if self.context else "unknown",
                    size=len(data),
                )
                await self.websocket.close(code=WSCloseCode.UNSUPPORTED_DATA, reason="Text frames only")
                return "unsupported_data"

            if len(data.encode("utf-8")) > self.max_message_size:
                logger.warning(
                    "Message too large",
                    identifier=self.context.identifier if self.context else "unknown",
                    size=len(data),
                    max_size=self.max_message_size,
                )
                await self.websocket.close(code=WSCloseCode.MESSAGE_TOO_BIG, reason="Message too large")
                return "message_too_big"

            if await handle_heartbeat(self.websocket, data):
                continue

            await self._dispatch_frame(data)

        return "stopped"

    async def _dispatch_frame(self, data: str) -> None:
        try:
            frame = json.loads(data)
        except json.JSONDecodeError:
            logger.debug(
                "Undecodable frame",
                identifier=self.context.identifier if self.context else "unknown",
                message=sanitize_log_data(data, WSConstants.LOG_PREVIEW_LENGTH),
            )
            await self.send_event_error(None, "Invalid JSON")
            return

        if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
            await self.send_event_error(None, "Frame must be an object with an event name")
            return

        await self.handle_event(frame["event"], frame.get("data"))

    async def send_event_error(self, event: str | None, error: str) -> None:
        await self.manager.send_to_connection(
            self.websocket,
            OutboundEvent.EVENT_ERROR,
            {"event": event, "error": error},
        )

    async def _receive_with_timeout(self) -> str | bytes | None:
        """
        Receive one frame.

        Returns:
            Text data, the raw bytes of a binary frame, or None on idle timeout.

        Raises:
            WebSocketDisconnect: The client went away.
        """
        try:
            message = await asyncio.wait_for(
                self.websocket.receive(),
                timeout=self.receive_timeout,
            )
        except asyncio.TimeoutError:
            return None

        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(message.get("code", WSCloseCode.NORMAL), message.get("reason"))
        if message.get("text") is not None:
            return message["text"]
        return message.get("bytes") or b""
