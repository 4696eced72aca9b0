"""
WebSocket Gateway main application.

Serves the ``/ws`` socket for owners and employees and mounts the REST
routers, so a REST change reaches connected sockets through the same
in-process EventRouter.

Run:
    uvicorn ws_gateway.main:app --port 8001
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request, WebSocket

from rest_api.core import configure_cors, register_exception_handlers
from rest_api.repositories.store import DataStore
from rest_api.routers import employees_router, messages_router, tasks_router
from shared.config.logging import setup_logging, ws_gateway_logger as logger
from shared.config.settings import settings
from shared.infrastructure.correlation import CorrelationIdMiddleware
from ws_gateway.components.endpoints.handlers import ChatEndpoint
from ws_gateway.components.events.router import EventRouter
from ws_gateway.connection_manager import ConnectionManager


def create_app(
    store: DataStore | None = None,
    manager: ConnectionManager | None = None,
) -> FastAPI:
    """
    Build the application and its single registry/router instances.

    Args:
        store: Data store; defaults to one bound to settings.database_url.
        manager: Connection manager; defaults to a fresh one.
    """
    store = store if store is not None else DataStore()
    manager = manager if manager is not None else ConnectionManager()
    event_router = EventRouter(manager, store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging()

        secret_errors = settings.validate_production_secrets()
        if secret_errors:
            for error in secret_errors:
                logger.error("Configuration error", error=error)
            if settings.environment == "production":
                raise RuntimeError(
                    f"Production configuration errors: {'; '.join(secret_errors)}. "
                    "Server will not start with insecure configuration."
                )
            logger.warning("Running with insecure defaults (acceptable for development only)")

        logger.info(
            "Starting WebSocket Gateway",
            port=settings.ws_gateway_port,
            env=settings.environment,
        )
        store.create_schema()
        logger.info("Database tables created/verified")

        yield

        logger.info("Shutting down WebSocket Gateway")
        await manager.shutdown()

    app = FastAPI(
        title="Taskflow Realtime Gateway",
        description="Presence, chat and task notifications for owners and employees",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.manager = manager
    app.state.event_router = event_router

    configure_cors(app)
    app.add_middleware(CorrelationIdMiddleware)
    register_exception_handlers(app)

    app.include_router(messages_router)
    app.include_router(tasks_router)
    app.include_router(employees_router)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get("/health")
    def health_check():
        """Basic liveness check."""
        return {
            "status": "healthy",
            "service": "taskflow-gateway",
            "version": app.version,
            "environment": settings.environment,
        }

    @app.get("/ws/health/detailed")
    def detailed_health_check(request: Request):
        """Connection, routing and data store counters."""
        state = request.app.state
        return {
            "status": "degraded" if state.manager.is_shutting_down else "healthy",
            "service": "taskflow-gateway",
            "environment": settings.environment,
            "connections": state.manager.get_stats(),
            "routing": state.event_router.get_stats(),
            "store": state.store.get_stats(),
        }

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/ws")
    async def chat_websocket(
        websocket: WebSocket,
        token: str | None = Query(default=None),
    ):
        """
        Real-time socket for owners and employees.

        The access token comes from ``?token=`` or an ``Authorization:
        Bearer`` header.
        """
        state = websocket.app.state
        endpoint = ChatEndpoint(websocket, state.manager, state.event_router, token)
        await endpoint.run()

    return app


app = create_app()
