"""
WebSocket endpoint components.
"""

from ws_gateway.components.endpoints.base import WebSocketEndpointBase
from ws_gateway.components.endpoints.handlers import ChatEndpoint

__all__ = [
    "WebSocketEndpointBase",
    "ChatEndpoint",
]
