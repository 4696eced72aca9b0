"""
Event Router - delivers domain events to the right live connections.

Routing rules (delivery is "emit to the target's private channel if
online, otherwise drop"; there is no queue and no retry):

| Domain event                         | Target(s)                            |
|--------------------------------------|--------------------------------------|
| message-created, message-deleted     | recipient (payload["to"])            |
| typing-state-changed                 | the named other user                 |
| task-created/updated/status/deleted  | task assignee + creator, deduplicated|
| employee-added/updated/deleted       | every online owner                   |

The router also owns the one create-and-route operation used for chat
messages by both the socket send path and REST POST /api/messages.

Usage:
    router = EventRouter(manager, store)
    result = await router.route(DomainEvent.TASK_CREATED, {"task": task, "assignedTo": ...})
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Protocol, TYPE_CHECKING

from shared.config.constants import Limits, MessageType, Roles
from shared.config.logging import get_logger
from shared.utils.exceptions import InvalidEventPayload, PersistenceError
from ws_gateway.components.events.types import (
    Audience,
    DomainEvent,
    DomainEventMessage,
    OutboundEvent,
)

if TYPE_CHECKING:
    from ws_gateway.components.core.context import ConnectionContext

logger = get_logger(__name__)

MESSAGE_ERROR_INVALID = "Invalid message data"
MESSAGE_ERROR_FAILED = "Failed to send message"

# Fields of a stored message echoed to clients
_MESSAGE_WIRE_FIELDS = ("id", "from", "to", "message", "type", "timestamp")


class ConnectionManagerProtocol(Protocol):
    """What the router needs from ConnectionManager."""

    async def send_to_connection(self, websocket: Any, event: Any, data: dict | None = None) -> bool: ...

    async def send_to_user(self, user_id: str, event: Any, data: dict | None = None) -> bool: ...

    async def send_to_role(self, role: str, event: Any, data: dict | None = None) -> int: ...


class MessageStoreProtocol(Protocol):
    """What the router needs from the data-access collaborator."""

    async def create_message(self, data: dict[str, Any]) -> dict[str, Any]: ...


@dataclass
class RoutingResult:
    """Outcome of routing one event."""

    event: str
    targets: list[str] = field(default_factory=list)
    delivered: int = 0
    offline: list[str] = field(default_factory=list)


# =============================================================================
# Payload validation
# =============================================================================


def validate_send_message(data: Any) -> tuple[str, str, str]:
    """
    Validate a send-message payload.

    Accepts the recipient as ``toUserId`` (socket clients) or ``to`` (REST).

    Returns:
        (to_user_id, text, message_type)

    Raises:
        InvalidEventPayload: Missing recipient, blank body, unknown type.
    """
    if not isinstance(data, Mapping):
        raise InvalidEventPayload("send-message", "payload must be an object")

    to_user_id = data.get("toUserId") or data.get("to")
    if not isinstance(to_user_id, str) or not to_user_id.strip():
        raise InvalidEventPayload("send-message", "recipient is required")

    text = data.get("message")
    if not isinstance(text, str) or not text.strip():
        raise InvalidEventPayload("send-message", "message body is required")
    if len(text) > Limits.MAX_MESSAGE_LENGTH:
        raise InvalidEventPayload("send-message", "message body too long")

    message_type = data.get("type") or MessageType.TEXT
    if message_type not in MessageType.ALL:
        raise InvalidEventPayload("send-message", f"unknown message type: {message_type}")

    return to_user_id.strip(), text, message_type


def require_user_id(data: Any, key: str, event: str) -> str:
    """Extract a non-blank user id from an inbound payload."""
    value = data.get(key) if isinstance(data, Mapping) else None
    if not isinstance(value, str) or not value.strip():
        raise InvalidEventPayload(event, f"{key} is required")
    return value.strip()


def task_parties(task: Mapping[str, Any]) -> list[str]:
    """Assignee and creator of a task, deduplicated, assignee first."""
    parties: list[str] = []
    for key in ("assignedTo", "createdBy"):
        user_id = task.get(key)
        if user_id and user_id not in parties:
            parties.append(str(user_id))
    return parties


# =============================================================================
# Router
# =============================================================================


class EventRouter:
    """
    Routes domain events to live connections; offline targets are a
    silent no-op.
    """

    def __init__(self, manager: ConnectionManagerProtocol, store: MessageStoreProtocol) -> None:
        self._manager = manager
        self._store = store
        self._dispatch: dict[Audience, Callable[[DomainEventMessage], Awaitable[RoutingResult]]] = {
            Audience.RECIPIENT: self._route_to_recipient,
            Audience.TYPING_TARGET: self._route_to_typing_target,
            Audience.TASK_PARTIES: self._route_to_task_parties,
            Audience.OWNERS: self._route_to_owners,
        }
        self._routed = 0
        self._dropped_offline = 0

    async def route(
        self,
        event: DomainEvent,
        payload: Mapping[str, Any],
        target_user_id: str | None = None,
    ) -> RoutingResult:
        """
        Deliver ``event`` per its routing rule.

        Raises:
            InvalidEventPayload: The payload lacks what the rule needs
                (recipient, task parties, typing target).
        """
        message = DomainEventMessage(event, payload, target_user_id)
        result = await self._dispatch[message.audience](message)

        self._routed += 1
        self._dropped_offline += len(result.offline)
        logger.debug(
            "Event routed",
            domain_event=event.value,
            targets=result.targets,
            delivered=result.delivered,
            offline=len(result.offline),
        )
        return result

    # =========================================================================
    # Per-audience dispatch
    # =========================================================================

    async def _route_to_recipient(self, message: DomainEventMessage) -> RoutingResult:
        recipient = message.payload.get("to")
        if not recipient:
            raise InvalidEventPayload(message.event.value, "recipient is required")
        return await self._deliver_to_users(message.event, [str(recipient)], message.outbound, message.payload)

    async def _route_to_typing_target(self, message: DomainEventMessage) -> RoutingResult:
        if not message.target_user_id:
            raise InvalidEventPayload(message.event.value, "toUserId is required")
        return await self._deliver_to_users(
            message.event, [message.target_user_id], message.outbound, message.payload
        )

    async def _route_to_task_parties(self, message: DomainEventMessage) -> RoutingResult:
        task = message.payload.get("task")
        if not isinstance(task, Mapping):
            raise InvalidEventPayload(message.event.value, "task is required")
        parties = task_parties(task)
        if not parties:
            raise InvalidEventPayload(message.event.value, "task has no assignee or creator")
        return await self._deliver_to_users(message.event, parties, message.outbound, message.payload)

    async def _route_to_owners(self, message: DomainEventMessage) -> RoutingResult:
        delivered = await self._manager.send_to_role(
            Roles.OWNER, message.outbound, dict(message.payload)
        )
        return RoutingResult(event=message.event.value, targets=[f"role:{Roles.OWNER}"], delivered=delivered)

    async def _deliver_to_users(
        self,
        event: DomainEvent | str,
        user_ids: list[str],
        outbound: OutboundEvent,
        payload: Mapping[str, Any],
    ) -> RoutingResult:
        name = event.value if isinstance(event, DomainEvent) else event
        result = RoutingResult(event=name, targets=list(user_ids))
        data = dict(payload)
        for user_id in user_ids:
            if await self._manager.send_to_user(user_id, outbound, data):
                result.delivered += 1
            else:
                result.offline.append(user_id)
        return result

    # =========================================================================
    # Chat messages
    # =========================================================================

    async def create_and_route_message(
        self,
        sender_id: str,
        sender_role: str,
        to_user_id: str,
        text: str,
        message_type: str = MessageType.TEXT,
    ) -> dict[str, Any]:
        """
        Persist a chat message, then push ``new-message`` to the recipient
        if online.

        Returns:
            The stored message.

        Raises:
            PersistenceError: The store failed; nothing was delivered.
        """
        message = await self._store.create_message({
            "from": sender_id,
            "to": to_user_id,
            "message": text,
            "type": message_type,
        })

        payload = {key: message[key] for key in _MESSAGE_WIRE_FIELDS}
        payload["senderRole"] = sender_role
        await self.route(DomainEvent.MESSAGE_CREATED, payload)
        return message

    async def handle_send_message(
        self,
        context: "ConnectionContext",
        data: Any,
    ) -> dict[str, Any] | None:
        """
        Socket send-message path.

        1. validate recipient and body (else ``message-error``, no write)
        2. persist
        3. ``new-message`` to the recipient if online
        4. ``message-sent`` to this connection, whether or not the
           recipient was online

        Returns:
            The stored message, or None if it was rejected or not stored.
        """
        try:
            to_user_id, text, message_type = validate_send_message(data)
        except InvalidEventPayload as e:
            logger.info("Rejected send-message", user_id=context.user_id, reason=e.reason)
            await self._manager.send_to_connection(
                context.websocket, OutboundEvent.MESSAGE_ERROR, {"error": MESSAGE_ERROR_INVALID}
            )
            return None

        try:
            message = await self.create_and_route_message(
                context.user_id, context.role, to_user_id, text, message_type
            )
        except PersistenceError as e:
            logger.error(
                "Failed to send message",
                user_id=context.user_id,
                to_user_id=to_user_id,
                operation=e.operation,
                exc_info=True,
            )
            await self._manager.send_to_connection(
                context.websocket, OutboundEvent.MESSAGE_ERROR, {"error": MESSAGE_ERROR_FAILED}
            )
            return None

        ack = {key: message[key] for key in _MESSAGE_WIRE_FIELDS}
        await self._manager.send_to_connection(context.websocket, OutboundEvent.MESSAGE_SENT, ack)
        return message

    # =========================================================================
    # Typing and task relay
    # =========================================================================

    async def handle_typing(self, context: "ConnectionContext", data: Any, typing: bool) -> RoutingResult:
        """Relay a typing indicator to the other user only."""
        event = "typing-start" if typing else "typing-stop"
        target = require_user_id(data, "toUserId", event)
        return await self.route(
            DomainEvent.TYPING_STATE_CHANGED,
            {"userId": context.user_id, "typing": typing},
            target_user_id=target,
        )

    async def relay_task_update(self, context: "ConnectionContext", data: Any) -> RoutingResult:
        """
        Relay a client-side ``task-updated`` as ``task-notification`` to the
        task's assignee and creator.
        """
        if not isinstance(data, Mapping):
            raise InvalidEventPayload("task-updated", "payload must be an object")
        parties = task_parties(data)
        if not parties:
            raise InvalidEventPayload("task-updated", "assignedTo or createdBy is required")

        logger.debug("Relaying task update", user_id=context.user_id, task_id=data.get("id"))
        return await self._deliver_to_users(
            "task-updated",
            parties,
            OutboundEvent.TASK_NOTIFICATION,
            {"type": "task-updated", "task": dict(data)},
        )

    def get_stats(self) -> dict[str, int]:
        return {"events_routed": self._routed, "dropped_offline": self._dropped_offline}
