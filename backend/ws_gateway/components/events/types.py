"""
Event vocabulary of the gateway.

Three closed enumerations replace free-form event-name strings:
- DomainEvent: what happened (routing key for EventRouter)
- InboundEvent: what a client may send over the socket
- OutboundEvent: what the server emits to clients

Every frame on the wire, in both directions, is a JSON object
``{"event": <name>, "data": {...}}``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class DomainEvent(str, Enum):
    """Domain events handed to the EventRouter."""

    MESSAGE_CREATED = "message-created"
    MESSAGE_DELETED = "message-deleted"

    TASK_CREATED = "task-created"
    TASK_UPDATED = "task-updated"
    TASK_STATUS_UPDATED = "task-status-updated"
    TASK_DELETED = "task-deleted"

    EMPLOYEE_ADDED = "employee-added"
    EMPLOYEE_UPDATED = "employee-updated"
    EMPLOYEE_DELETED = "employee-deleted"

    TYPING_STATE_CHANGED = "typing-state-changed"


class InboundEvent(str, Enum):
    """Client -> server events."""

    JOIN_CHAT = "join-chat"
    SEND_MESSAGE = "send-message"
    TYPING_START = "typing-start"
    TYPING_STOP = "typing-stop"
    # Relay-only: passed straight to the task notification rule
    TASK_UPDATED = "task-updated"


class OutboundEvent(str, Enum):
    """Server -> client events."""

    NEW_MESSAGE = "new-message"
    MESSAGE_SENT = "message-sent"
    MESSAGE_ERROR = "message-error"
    MESSAGE_DELETED = "message-deleted"
    USER_TYPING = "user-typing"

    TASK_NOTIFICATION = "task-notification"
    NEW_TASK_ASSIGNED = "new-task-assigned"
    TASK_UPDATED = "task-updated"
    TASK_STATUS_UPDATED = "task-status-updated"
    TASK_DELETED = "task-deleted"

    EMPLOYEE_ADDED = "employee-added"
    EMPLOYEE_UPDATED = "employee-updated"
    EMPLOYEE_DELETED = "employee-deleted"

    EVENT_ERROR = "event-error"


class Audience(str, Enum):
    """Who receives a domain event."""

    RECIPIENT = "recipient"  # payload["to"]
    TYPING_TARGET = "typing_target"  # explicit target user
    TASK_PARTIES = "task_parties"  # task assignee + creator, deduplicated
    OWNERS = "owners"  # every online owner


# Wire name emitted for each domain event
OUTBOUND_NAMES: Mapping[DomainEvent, OutboundEvent] = MappingProxyType({
    DomainEvent.MESSAGE_CREATED: OutboundEvent.NEW_MESSAGE,
    DomainEvent.MESSAGE_DELETED: OutboundEvent.MESSAGE_DELETED,
    DomainEvent.TYPING_STATE_CHANGED: OutboundEvent.USER_TYPING,
    DomainEvent.TASK_CREATED: OutboundEvent.NEW_TASK_ASSIGNED,
    DomainEvent.TASK_UPDATED: OutboundEvent.TASK_UPDATED,
    DomainEvent.TASK_STATUS_UPDATED: OutboundEvent.TASK_STATUS_UPDATED,
    DomainEvent.TASK_DELETED: OutboundEvent.TASK_DELETED,
    DomainEvent.EMPLOYEE_ADDED: OutboundEvent.EMPLOYEE_ADDED,
    DomainEvent.EMPLOYEE_UPDATED: OutboundEvent.EMPLOYEE_UPDATED,
    DomainEvent.EMPLOYEE_DELETED: OutboundEvent.EMPLOYEE_DELETED,
})

ROUTING_RULES: Mapping[DomainEvent, Audience] = MappingProxyType({
    DomainEvent.MESSAGE_CREATED: Audience.RECIPIENT,
    DomainEvent.MESSAGE_DELETED: Audience.RECIPIENT,
    DomainEvent.TYPING_STATE_CHANGED: Audience.TYPING_TARGET,
    DomainEvent.TASK_CREATED: Audience.TASK_PARTIES,
    DomainEvent.TASK_UPDATED: Audience.TASK_PARTIES,
    DomainEvent.TASK_STATUS_UPDATED: Audience.TASK_PARTIES,
    DomainEvent.TASK_DELETED: Audience.TASK_PARTIES,
    DomainEvent.EMPLOYEE_ADDED: Audience.OWNERS,
    DomainEvent.EMPLOYEE_UPDATED: Audience.OWNERS,
    DomainEvent.EMPLOYEE_DELETED: Audience.OWNERS,
})

def check_tables_complete(*tables: Mapping[DomainEvent, Any]) -> None:
    """
    Raise RuntimeError if a routing table misses a DomainEvent.

    Runs at import so an event added to the enum without a route fails fast.
    """
    for table in tables:
        missing = set(DomainEvent) - set(table)
        if missing:
            names = ", ".join(sorted(e.value for e in missing))
            raise RuntimeError(f"Routing table incomplete, missing: {names}")


check_tables_complete(OUTBOUND_NAMES, ROUTING_RULES)


def build_frame(event: OutboundEvent | str, data: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Wire frame for an outbound event."""
    name = event.value if isinstance(event, OutboundEvent) else event
    return {"event": name, "data": dict(data) if data is not None else {}}


@dataclass(frozen=True, slots=True)
class DomainEventMessage:
    """
    Immutable domain event plus its payload.

    The payload is deep-copied on construction so later mutation by the
    producer cannot change what gets delivered.

    Attributes:
        event: Which domain event happened.
        payload: Outbound data (the affected entity plus actor metadata).
        target_user_id: Receiver for TYPING_TARGET events.
    """

    event: DomainEvent
    payload: Mapping[str, Any] = field(default_factory=dict)
    target_user_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", MappingProxyType(copy.deepcopy(dict(self.payload))))

    @property
    def audience(self) -> Audience:
        return ROUTING_RULES[self.event]

    @property
    def outbound(self) -> OutboundEvent:
        return OUTBOUND_NAMES[self.event]

    def to_frame(self) -> dict[str, Any]:
        return build_frame(self.outbound, self.payload)
