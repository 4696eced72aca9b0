"""
Connection management components.

Handles who is online, channel membership, heartbeats and frame delivery.
"""

from ws_gateway.components.connection.rooms import (
    RoomManager,
    channel_id,
    private_channel,
)
from ws_gateway.components.connection.registry import ConnectionRegistry
from ws_gateway.components.connection.heartbeat import handle_heartbeat, is_heartbeat
from ws_gateway.components.connection.sender import ConnectionSender, is_ws_connected

__all__ = [
    "RoomManager",
    "channel_id",
    "private_channel",
    "ConnectionRegistry",
    "handle_heartbeat",
    "is_heartbeat",
    "ConnectionSender",
    "is_ws_connected",
]
