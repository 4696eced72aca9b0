"""
Concrete WebSocket endpoint for owners and employees.

Inbound events:
- join-chat {otherUserId}
- send-message {toUserId, message, type}
- typing-start / typing-stop {toUserId}
- task-updated {...taskFields} (relay only)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable

from fastapi import WebSocket

from shared.config.logging import get_logger
from shared.utils.exceptions import InvalidEventPayload
from ws_gateway.components.core.context import sanitize_log_data
from ws_gateway.components.endpoints.base import WebSocketEndpointBase
from ws_gateway.components.events.types import InboundEvent

if TYPE_CHECKING:
    from ws_gateway.components.auth.strategies import AuthStrategy
    from ws_gateway.components.events.router import EventRouter
    from ws_gateway.connection_manager import ConnectionManager

logger = get_logger(__name__)


class ChatEndpoint(WebSocketEndpointBase):
    """
    The ``/ws`` endpoint.

    Any authenticated owner or employee may connect. A bad payload is
    answered with an error frame and the connection stays open.
    """

    def __init__(
        self,
        websocket: WebSocket,
        manager: "ConnectionManager",
        router: "EventRouter",
        token: str | None = None,
        auth_strategy: "AuthStrategy | None" = None,
        **kwargs: Any,
    ):
        super().__init__(
            websocket=websocket,
            manager=manager,
            endpoint_name="/ws",
            token=token,
            auth_strategy=auth_strategy,
            **kwargs,
        )
        self.router = router
        self._handlers: dict[InboundEvent, Callable[[Any], Awaitable[None]]] = {
            InboundEvent.JOIN_CHAT: self._on_join_chat,
            InboundEvent.SEND_MESSAGE: self._on_send_message,
            InboundEvent.TYPING_START: self._on_typing_start,
            InboundEvent.TYPING_STOP: self._on_typing_stop,
            InboundEvent.TASK_UPDATED: self._on_task_updated,
        }

    async def handle_event(self, event: str, data: Any) -> None:
        try:
            inbound = InboundEvent(event)
        except ValueError:
            logger.debug(
                "Unknown event",
                identifier=self.context.identifier if self.context else "unknown",
                event=sanitize_log_data(event),
            )
            await self.send_event_error(event, "Unknown event")
            return

        try:
            await self._handlers[inbound](data)
        except InvalidEventPayload as e:
            logger.info(
                "Invalid event payload",
                identifier=self.context.identifier if self.context else "unknown",
                event=e.event,
                reason=e.reason,
            )
            await self.send_event_error(event, e.reason)
        except Exception:
            logger.error(
                "Unexpected error handling event",
                identifier=self.context.identifier if self.context else "unknown",
                event=event,
                exc_info=True,
            )
            await self.send_event_error(event, "Internal error")

    async def _on_join_chat(self, data: Any) -> None:
        other_user_id = data.get("otherUserId") if isinstance(data, dict) else None
        channel = self.manager.join_chat(self.websocket, other_user_id)
        logger.debug("Joined chat", identifier=self.context.identifier, channel=channel)

    async def _on_send_message(self, data: Any) -> None:
        # Validation and persistence failures are answered with message-error
        await self.router.handle_send_message(self.context, data)

    async def _on_typing_start(self, data: Any) -> None:
        await self.router.handle_typing(self.context, data, typing=True)

    async def _on_typing_stop(self, data: Any) -> None:
        await self.router.handle_typing(self.context, data, typing=False)

    async def _on_task_updated(self, data: Any) -> None:
        await self.router.relay_task_update(self.context, data)


__all__ = ["ChatEndpoint"]
