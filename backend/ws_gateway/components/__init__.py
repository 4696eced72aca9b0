"""
WebSocket Gateway Components.

- core/       - Constants and per-connection context
- auth/       - Handshake authentication strategies
- connection/ - Registry, rooms, heartbeat, frame delivery
- events/     - Event vocabulary and the event router
- endpoints/  - Endpoint base class and the chat endpoint
"""

from ws_gateway.components.core.constants import WSCloseCode, WSConstants
from ws_gateway.components.core.context import ConnectionContext, sanitize_log_data
from ws_gateway.components.auth.strategies import (
    AuthResult,
    AuthStrategy,
    JWTAuthStrategy,
    NullAuthStrategy,
)
from ws_gateway.components.connection.registry import ConnectionRegistry
from ws_gateway.components.connection.rooms import RoomManager, channel_id, private_channel
from ws_gateway.components.connection.sender import ConnectionSender
from ws_gateway.components.events.types import (
    DomainEvent,
    InboundEvent,
    OutboundEvent,
    DomainEventMessage,
)
from ws_gateway.components.events.router import EventRouter, RoutingResult
from ws_gateway.components.endpoints.handlers import ChatEndpoint

__all__ = [
    # Core
    "WSCloseCode",
    "WSConstants",
    "ConnectionContext",
    "sanitize_log_data",
    # Auth
    "AuthResult",
    "AuthStrategy",
    "JWTAuthStrategy",
    "NullAuthStrategy",
    # Connection
    "ConnectionRegistry",
    "RoomManager",
    "channel_id",
    "private_channel",
    "ConnectionSender",
    # Events
    "DomainEvent",
    "InboundEvent",
    "OutboundEvent",
    "DomainEventMessage",
    "EventRouter",
    "RoutingResult",
    # Endpoints
    "ChatEndpoint",
]
