"""
Tests for the send-message path: validate, persist, route, acknowledge.
"""

from unittest.mock import AsyncMock

import pytest

from shared.config.constants import Roles
from shared.utils.exceptions import InvalidEventPayload, PersistenceError
from ws_gateway.components.core.context import ConnectionContext
from ws_gateway.components.events.router import (
    MESSAGE_ERROR_FAILED,
    MESSAGE_ERROR_INVALID,
    EventRouter,
    validate_send_message,
)
from tests.conftest import FakeWebSocket


async def connect(manager, user_id, role):
    ws = FakeWebSocket()
    await manager.connect(ws, user_id, role)
    return ws, ConnectionContext(websocket=ws, user_id=user_id, role=role)


class TestValidateSendMessage:
    def test_socket_shape(self):
        assert validate_send_message({"toUserId": "o1", "message": "hi"}) == ("o1", "hi", "text")

    def test_rest_shape(self):
        assert validate_send_message({"to": "o1", "message": "pic", "type": "image"}) == (
            "o1",
            "pic",
            "image",
        )

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            "hello",
            {"message": "no recipient"},
            {"toUserId": "", "message": "hi"},
            {"toUserId": "o1"},
            {"toUserId": "o1", "message": "   "},
            {"toUserId": "o1", "message": "hi", "type": "video"},
            {"toUserId": "o1", "message": "x" * 4001},
        ],
    )
    def test_rejects(self, payload):
        with pytest.raises(InvalidEventPayload):
            validate_send_message(payload)


class TestHandleSendMessage:
    """End to end through a real store."""

    @pytest.mark.asyncio
    async def test_online_recipient(self, manager, router, store):
        sender, context = await connect(manager, "e1", Roles.EMPLOYEE)
        recipient, _ = await connect(manager, "o1", Roles.OWNER)

        message = await router.handle_send_message(context, {"toUserId": "o1", "message": "Done with the shelves"})

        pushed = recipient.frames("new-message")
        assert len(pushed) == 1
        assert pushed[0]["id"] == message["id"]
        assert pushed[0]["from"] == "e1"
        assert pushed[0]["senderRole"] == Roles.EMPLOYEE

        assert sender.events() == ["message-sent"]
        ack = sender.frames("message-sent")[0]
        assert ack["id"] == message["id"]
        assert "senderRole" not in ack

        history = await store.find_messages_between_users("o1", "e1")
        assert [m["message"] for m in history] == ["Done with the shelves"]

    @pytest.mark.asyncio
    async def test_offline_recipient_still_acked(self, manager, router, store):
        sender, context = await connect(manager, "e1", Roles.EMPLOYEE)

        message = await router.handle_send_message(context, {"toUserId": "o1", "message": "Are you there?"})

        assert message is not None
        assert sender.events() == ["message-sent"]
        assert "message-error" not in sender.events()
        assert await store.find_message_by_id(message["id"]) is not None

    @pytest.mark.asyncio
    async def test_empty_body_not_persisted(self, manager):
        store = AsyncMock()
        router = EventRouter(manager, store)
        sender, context = await connect(manager, "e1", Roles.EMPLOYEE)

        result = await router.handle_send_message(context, {"toUserId": "o1", "message": ""})

        assert result is None
        store.create_message.assert_not_awaited()
        assert sender.frames("message-error") == [{"error": MESSAGE_ERROR_INVALID}]

    @pytest.mark.asyncio
    async def test_persistence_failure(self, manager):
        store = AsyncMock()
        store.create_message.side_effect = PersistenceError("create_message", "OperationalError")
        router = EventRouter(manager, store)
        sender, context = await connect(manager, "e1", Roles.EMPLOYEE)
        recipient, _ = await connect(manager, "o1", Roles.OWNER)

        result = await router.handle_send_message(context, {"toUserId": "o1", "message": "hi"})

        assert result is None
        store.create_message.assert_awaited_once()
        assert sender.frames("message-error") == [{"error": MESSAGE_ERROR_FAILED}]
        assert recipient.sent == []

    @pytest.mark.asyncio
    async def test_ack_goes_to_sending_socket(self, manager, router):
        """A replaced socket that sends still gets its own ack."""
        old, old_context = await connect(manager, "e1", Roles.EMPLOYEE)
        new, _ = await connect(manager, "e1", Roles.EMPLOYEE)

        await router.handle_send_message(old_context, {"toUserId": "o1", "message": "from the old tab"})

        assert old.events() == ["message-sent"]
        assert new.sent == []
