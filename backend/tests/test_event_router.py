"""
Tests for event routing.

Tests verify:
- Each domain event reaches exactly its targets
- Offline targets are dropped without error
- Task parties are deduplicated
- Employee events reach owners only
"""

import pytest

from shared.config.constants import Roles
from shared.utils.exceptions import InvalidEventPayload
from ws_gateway.components.core.context import ConnectionContext
from ws_gateway.components.events.types import (
    OUTBOUND_NAMES,
    ROUTING_RULES,
    DomainEvent,
    DomainEventMessage,
    check_tables_complete,
)
from tests.conftest import FakeWebSocket


async def connect(manager, user_id, role, **kwargs):
    ws = FakeWebSocket(**kwargs)
    await manager.connect(ws, user_id, role)
    return ws


def task(assigned_to="e1", created_by="o1", **fields):
    return {"id": "t1", "title": "Stock shelves", "assignedTo": assigned_to, "createdBy": created_by, **fields}


class TestDirectedEvents:
    """message-created, message-deleted, typing"""

    @pytest.mark.asyncio
    async def test_message_created_reaches_recipient_only(self, manager, router):
        sender = await connect(manager, "e1", Roles.EMPLOYEE)
        recipient = await connect(manager, "o1", Roles.OWNER)

        result = await router.route(
            DomainEvent.MESSAGE_CREATED,
            {"id": "m1", "from": "e1", "to": "o1", "message": "hi", "senderRole": Roles.EMPLOYEE},
        )

        assert result.delivered == 1
        assert recipient.events() == ["new-message"]
        assert recipient.frames("new-message")[0]["message"] == "hi"
        assert sender.sent == []

    @pytest.mark.asyncio
    async def test_offline_recipient_is_silent(self, manager, router):
        result = await router.route(
            DomainEvent.MESSAGE_DELETED,
            {"messageId": "m1", "from": "e1", "to": "nobody"},
        )

        assert result.delivered == 0
        assert result.offline == ["nobody"]
        assert router.get_stats()["dropped_offline"] == 1

    @pytest.mark.asyncio
    async def test_missing_recipient_is_invalid(self, router):
        with pytest.raises(InvalidEventPayload):
            await router.route(DomainEvent.MESSAGE_CREATED, {"from": "e1", "message": "hi"})

    @pytest.mark.asyncio
    async def test_typing_reaches_other_user_only(self, manager, router):
        typist = await connect(manager, "e1", Roles.EMPLOYEE)
        other = await connect(manager, "o1", Roles.OWNER)
        context = ConnectionContext(websocket=typist, user_id="e1", role=Roles.EMPLOYEE)

        await router.handle_typing(context, {"toUserId": "o1"}, typing=True)
        await router.handle_typing(context, {"toUserId": "o1"}, typing=False)

        assert other.frames("user-typing") == [
            {"userId": "e1", "typing": True},
            {"userId": "e1", "typing": False},
        ]
        assert typist.sent == []

    @pytest.mark.asyncio
    async def test_typing_without_target_is_invalid(self, manager, router):
        typist = await connect(manager, "e1", Roles.EMPLOYEE)
        context = ConnectionContext(websocket=typist, user_id="e1", role=Roles.EMPLOYEE)

        with pytest.raises(InvalidEventPayload):
            await router.handle_typing(context, {}, typing=True)

    @pytest.mark.asyncio
    async def test_replaced_connection_gets_nothing(self, manager, router):
        old = await connect(manager, "o1", Roles.OWNER)
        new = await connect(manager, "o1", Roles.OWNER)

        await router.route(DomainEvent.MESSAGE_CREATED, {"id": "m1", "from": "e1", "to": "o1"})

        assert old.sent == []
        assert new.events() == ["new-message"]


class TestTaskEvents:
    """Task events go to assignee and creator."""

    @pytest.mark.asyncio
    async def test_both_parties_notified(self, manager, router):
        employee = await connect(manager, "e1", Roles.EMPLOYEE)
        owner = await connect(manager, "o1", Roles.OWNER)
        bystander = await connect(manager, "e2", Roles.EMPLOYEE)

        result = await router.route(
            DomainEvent.TASK_CREATED,
            {"task": task(), "assignedTo": "e1"},
        )

        assert sorted(result.targets) == ["e1", "o1"]
        assert employee.events() == ["new-task-assigned"]
        assert owner.events() == ["new-task-assigned"]
        assert bystander.sent == []

    @pytest.mark.asyncio
    async def test_assignee_is_creator_notified_once(self, manager, router):
        ws = await connect(manager, "o1", Roles.OWNER)

        result = await router.route(
            DomainEvent.TASK_UPDATED,
            {"task": task(assigned_to="o1", created_by="o1"), "updatedBy": "o1"},
        )

        assert result.targets == ["o1"]
        assert ws.events() == ["task-updated"]

    @pytest.mark.asyncio
    async def test_offline_creator_still_reaches_assignee(self, manager, router):
        employee = await connect(manager, "e1", Roles.EMPLOYEE)

        result = await router.route(
            DomainEvent.TASK_STATUS_UPDATED,
            {"task": task(status="completed"), "updatedBy": "e1"},
        )

        assert result.delivered == 1
        assert result.offline == ["o1"]
        assert employee.frames("task-status-updated")[0]["task"]["status"] == "completed"

    @pytest.mark.asyncio
    async def test_task_deleted_payload(self, manager, router):
        employee = await connect(manager, "e1", Roles.EMPLOYEE)

        await router.route(
            DomainEvent.TASK_DELETED,
            {"taskId": "t1", "assignedTo": "e1", "task": task()},
        )

        data = employee.frames("task-deleted")[0]
        assert data["taskId"] == "t1"
        assert data["assignedTo"] == "e1"

    @pytest.mark.asyncio
    async def test_task_without_parties_is_invalid(self, router):
        with pytest.raises(InvalidEventPayload):
            await router.route(DomainEvent.TASK_CREATED, {"task": {"id": "t1"}})

    @pytest.mark.asyncio
    async def test_client_task_relay(self, manager, router):
        employee = await connect(manager, "e1", Roles.EMPLOYEE)
        owner = await connect(manager, "o1", Roles.OWNER)
        context = ConnectionContext(websocket=employee, user_id="e1", role=Roles.EMPLOYEE)

        result = await router.relay_task_update(context, task(status="in-progress"))

        assert result.delivered == 2
        frame = owner.frames("task-notification")[0]
        assert frame["type"] == "task-updated"
        assert frame["task"]["status"] == "in-progress"


class TestOwnerBroadcast:
    """Employee events go to every online owner."""

    @pytest.mark.asyncio
    async def test_three_owners_two_employees(self, manager, router):
        owners = [await connect(manager, f"o{i}", Roles.OWNER) for i in range(3)]
        employees = [await connect(manager, f"e{i}", Roles.EMPLOYEE) for i in range(2)]

        result = await router.route(
            DomainEvent.EMPLOYEE_ADDED,
            {"employee": {"id": "e9", "name": "New Hire"}},
        )

        assert result.delivered == 3
        for ws in owners:
            assert ws.frames("employee-added") == [{"employee": {"id": "e9", "name": "New Hire"}}]
        for ws in employees:
            assert ws.sent == []

    @pytest.mark.asyncio
    async def test_no_owners_online(self, manager, router):
        await connect(manager, "e1", Roles.EMPLOYEE)

        result = await router.route(DomainEvent.EMPLOYEE_DELETED, {"employeeId": "e1"})

        assert result.delivered == 0

    @pytest.mark.asyncio
    async def test_broken_socket_does_not_stop_others(self, manager, router):
        broken = await connect(manager, "o1", Roles.OWNER, fail_sends=True)
        healthy = await connect(manager, "o2", Roles.OWNER)

        result = await router.route(DomainEvent.EMPLOYEE_UPDATED, {"employee": {"id": "e1"}})

        assert result.delivered == 1
        assert broken.sent == []
        assert healthy.events() == ["employee-updated"]


class TestDomainEventMessage:
    def test_payload_is_snapshot(self):
        payload = {"task": {"id": "t1", "assignedTo": "e1"}}
        message = DomainEventMessage(DomainEvent.TASK_CREATED, payload)

        payload["task"]["assignedTo"] = "e2"

        assert message.payload["task"]["assignedTo"] == "e1"
        with pytest.raises(TypeError):
            message.payload["task"] = {}

    def test_frame_uses_outbound_name(self):
        message = DomainEventMessage(DomainEvent.TASK_CREATED, {"assignedTo": "e1"})

        assert message.to_frame() == {"event": "new-task-assigned", "data": {"assignedTo": "e1"}}


class TestRoutingTables:
    def test_tables_cover_every_event(self):
        check_tables_complete(OUTBOUND_NAMES, ROUTING_RULES)

    def test_missing_event_raises(self):
        partial = {e: ROUTING_RULES[e] for e in DomainEvent if e is not DomainEvent.TASK_DELETED}

        with pytest.raises(RuntimeError, match="task-deleted"):
            check_tables_complete(partial)
