"""
Event vocabulary and routing.
"""

from ws_gateway.components.events.types import (
    Audience,
    DomainEvent,
    DomainEventMessage,
    InboundEvent,
    OutboundEvent,
    build_frame,
)
from ws_gateway.components.events.router import (
    EventRouter,
    RoutingResult,
    task_parties,
    validate_send_message,
)

__all__ = [
    "Audience",
    "DomainEvent",
    "DomainEventMessage",
    "InboundEvent",
    "OutboundEvent",
    "build_frame",
    "EventRouter",
    "RoutingResult",
    "task_parties",
    "validate_send_message",
]
