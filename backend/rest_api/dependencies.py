"""
FastAPI dependencies for the REST routers.

The data store and event router are built once by
``ws_gateway.main.create_app`` and kept on ``app.state``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
    from rest_api.repositories.store import DataStore
    from ws_gateway.components.events.router import EventRouter


def get_store(request: Request) -> "DataStore":
    return request.app.state.store


def get_event_router(request: Request) -> "EventRouter":
    return request.app.state.event_router
