"""
Tests for the ConnectionManager facade and frame delivery.
"""

import asyncio

import pytest
from starlette.websockets import WebSocketState

from shared.config.constants import Roles
from ws_gateway.components.connection.sender import ConnectionSender
from ws_gateway.components.core.constants import WSCloseCode
from ws_gateway.components.events.types import OutboundEvent
from ws_gateway.connection_manager import ConnectionManager
from tests.conftest import FakeWebSocket


class SlowAcceptWebSocket(FakeWebSocket):
    async def accept(self) -> None:
        await asyncio.sleep(1)


class FailingAcceptWebSocket(FakeWebSocket):
    async def accept(self) -> None:
        raise RuntimeError("handshake aborted")


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_connect_accepts_and_registers(self, manager):
        ws = FakeWebSocket()

        await manager.connect(ws, "e1", Roles.EMPLOYEE)

        assert ws.accepted
        assert manager.registry.lookup("e1") is ws
        assert manager.get_stats()["total_accepted"] == 1

    @pytest.mark.asyncio
    async def test_accept_timeout(self):
        manager = ConnectionManager(accept_timeout=0.01)

        with pytest.raises(ConnectionError):
            await manager.connect(SlowAcceptWebSocket(), "e1", Roles.EMPLOYEE)

        assert not manager.registry.is_online("e1")

    @pytest.mark.asyncio
    async def test_accept_failure(self, manager):
        with pytest.raises(ConnectionError):
            await manager.connect(FailingAcceptWebSocket(), "e1", Roles.EMPLOYEE)

        assert manager.registry.list_online() == frozenset()

    @pytest.mark.asyncio
    async def test_disconnect(self, manager):
        ws = FakeWebSocket()
        await manager.connect(ws, "e1", Roles.EMPLOYEE)
        manager.join_chat(ws, "o1")

        assert await manager.disconnect(ws, "e1") is True
        assert manager.rooms.get_stats()["channels"] == 0

    @pytest.mark.asyncio
    async def test_join_chat_requires_registration(self, manager):
        with pytest.raises(ConnectionError):
            manager.join_chat(FakeWebSocket(), "o1")

    @pytest.mark.asyncio
    async def test_shutdown_closes_everything(self, manager):
        sockets = [FakeWebSocket() for _ in range(3)]
        for i, ws in enumerate(sockets):
            await manager.connect(ws, f"u{i}", Roles.EMPLOYEE)

        closed = await manager.shutdown()

        assert closed == 3
        assert all(ws.close_code == WSCloseCode.GOING_AWAY for ws in sockets)
        assert manager.registry.list_online() == frozenset()
        with pytest.raises(ConnectionError):
            await manager.connect(FakeWebSocket(), "late", Roles.OWNER)


class TestDelivery:
    @pytest.mark.asyncio
    async def test_send_to_user_offline(self, manager):
        assert await manager.send_to_user("ghost", OutboundEvent.NEW_MESSAGE, {}) is False

    @pytest.mark.asyncio
    async def test_emit_to_chat_channel(self, manager):
        employee, owner = FakeWebSocket(), FakeWebSocket()
        await manager.connect(employee, "e1", Roles.EMPLOYEE)
        await manager.connect(owner, "o1", Roles.OWNER)
        channel = manager.join_chat(employee, "o1")
        assert manager.join_chat(owner, "e1") == channel

        delivered = await manager.emit_to_channel(channel, "custom", {"x": 1})

        assert delivered == 2
        assert employee.sent == owner.sent == [{"event": "custom", "data": {"x": 1}}]

    @pytest.mark.asyncio
    async def test_send_to_closed_socket_returns_false(self, manager):
        ws = FakeWebSocket()
        await manager.connect(ws, "e1", Roles.EMPLOYEE)
        ws.client_state = WebSocketState.DISCONNECTED

        assert await manager.send_to_connection(ws, OutboundEvent.MESSAGE_SENT, {}) is False
        assert manager.get_stats()["frames_failed"] == 1


class TestConnectionSender:
    @pytest.mark.asyncio
    async def test_send_timeout(self):
        class StuckWebSocket(FakeWebSocket):
            async def send_json(self, data):
                await asyncio.sleep(1)

        sender = ConnectionSender(send_timeout=0.01)

        assert await sender.send(StuckWebSocket(), {"event": "x", "data": {}}) is False

    @pytest.mark.asyncio
    async def test_send_many_counts_successes(self):
        sender = ConnectionSender()
        targets = [FakeWebSocket(), FakeWebSocket(fail_sends=True), FakeWebSocket()]

        assert await sender.send_many(targets, {"event": "x", "data": {}}) == 2
        assert await sender.send_many([], {"event": "x", "data": {}}) == 0
