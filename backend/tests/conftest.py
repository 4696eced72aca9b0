"""
Pytest configuration and fixtures for backend tests.
"""

from typing import Any

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketState

from rest_api.models import Employee, Owner
from rest_api.repositories.store import DataStore
from shared.infrastructure.db import build_engine, build_session_factory
from shared.security.auth import issue_employee_token, issue_owner_token
from ws_gateway.components.events.router import EventRouter
from ws_gateway.connection_manager import ConnectionManager


# SQLite in-memory database for testing (StaticPool keeps one connection)
SQLALCHEMY_DATABASE_URL = "sqlite://"


class FakeWebSocket:
    """
    Stand-in for a Starlette WebSocket that records what was sent.

    Hashable by identity, like the real thing, so it can live in the
    registry and room tables.
    """

    def __init__(self, origin: str | None = None, fail_sends: bool = False):
        self.headers: dict[str, str] = {"origin": origin} if origin else {}
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.fail_sends = fail_sends
        self.accepted = False
        self.sent: list[dict[str, Any]] = []
        self.texts: list[str] = []
        self.close_code: int | None = None

    async def accept(self) -> None:
        self.accepted = True

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.close_code = code
        self.client_state = WebSocketState.DISCONNECTED
        self.application_state = WebSocketState.DISCONNECTED

    async def send_json(self, data: dict[str, Any]) -> None:
        if self.fail_sends:
            raise RuntimeError("send on broken socket")
        self.sent.append(data)

    async def send_text(self, data: str) -> None:
        self.texts.append(data)

    def events(self) -> list[str]:
        return [frame["event"] for frame in self.sent]

    def frames(self, event: str) -> list[dict[str, Any]]:
        """Payloads of every frame named ``event``."""
        return [frame["data"] for frame in self.sent if frame["event"] == event]


# =============================================================================
# Data store
# =============================================================================


@pytest.fixture(scope="function")
def session_factory():
    """
    Fresh in-memory database for each test.
    """
    engine = build_engine(SQLALCHEMY_DATABASE_URL)
    factory = build_session_factory(engine)
    yield factory
    engine.dispose()


@pytest.fixture
def store(session_factory):
    data_store = DataStore(session_factory)
    data_store.create_schema()
    return data_store


@pytest.fixture
def seed_owner(session_factory, store) -> dict[str, Any]:
    """Create an owner (O1)."""
    with session_factory() as db:
        owner = Owner(id="owner-1", name="Olivia Owner", phone_number="+15550001")
        db.add(owner)
        db.commit()
        return owner.to_dict()


@pytest.fixture
def seed_employee(session_factory, store, seed_owner) -> dict[str, Any]:
    """Create an active employee (E1) managed by O1."""
    with session_factory() as db:
        employee = Employee(
            id="employee-1",
            name="Eli Employee",
            email="eli@example.com",
            department="Ops",
            is_active=True,
            created_by=seed_owner["id"],
        )
        db.add(employee)
        db.commit()
        return employee.to_dict()


# =============================================================================
# Gateway
# =============================================================================


@pytest.fixture
def manager() -> ConnectionManager:
    return ConnectionManager(accept_timeout=1.0)


@pytest.fixture
def router(manager, store) -> EventRouter:
    return EventRouter(manager, store)


@pytest.fixture
def make_ws():
    """Factory for FakeWebSocket instances."""
    def _make(**kwargs: Any) -> FakeWebSocket:
        return FakeWebSocket(**kwargs)
    return _make


# =============================================================================
# Auth helpers
# =============================================================================


@pytest.fixture
def owner_token(seed_owner) -> str:
    return issue_owner_token(seed_owner["id"], phone_number=seed_owner["phoneNumber"])


@pytest.fixture
def employee_token(seed_employee) -> str:
    return issue_employee_token(seed_employee["id"], email=seed_employee["email"])


@pytest.fixture
def owner_headers(owner_token) -> dict[str, str]:
    return {"Authorization": f"Bearer {owner_token}"}


@pytest.fixture
def employee_headers(employee_token) -> dict[str, str]:
    return {"Authorization": f"Bearer {employee_token}"}


# =============================================================================
# Application
# =============================================================================


@pytest.fixture
def app(store):
    from ws_gateway.main import create_app

    return create_app(store=store, manager=ConnectionManager(accept_timeout=1.0))


@pytest.fixture
def client(app):
    """
    Test client running the app lifespan (schema creation, shutdown).
    """
    with TestClient(app) as test_client:
        yield test_client
