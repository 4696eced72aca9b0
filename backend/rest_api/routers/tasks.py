"""
Tasks router.
Owners create, edit and delete tasks; employees move their own tasks
through pending -> in-progress -> completed.

Every change is routed to the task's assignee and creator if they are
online.
"""

from typing import Any

from fastapi import APIRouter, Depends, status

from rest_api.dependencies import get_event_router, get_store
from rest_api.repositories.store import DataStore
from shared.config.constants import TaskStatus
from shared.config.logging import rest_api_logger as logger
from shared.security.auth import AuthUser, get_current_user, require_employee, require_owner
from shared.utils.exceptions import ForbiddenError, NotFoundError, ValidationError
from shared.utils.schemas import TaskCreate, TaskStatusUpdate, TaskUpdate
from ws_gateway.components.events.router import EventRouter
from ws_gateway.components.events.types import DomainEvent


router = APIRouter(tags=["tasks"])


async def _require_active_employee(store: DataStore, employee_id: str) -> dict[str, Any]:
    employee = await store.find_employee_by_id(employee_id)
    if employee is None or not employee.get("isActive"):
        raise ValidationError("Assignee must be an active employee", assigned_to=employee_id)
    return employee


async def _with_assignee(store: DataStore, task: dict[str, Any]) -> dict[str, Any]:
    employee = await store.find_employee_by_id(task["assignedTo"])
    return {
        **task,
        "assignedEmployee": {
            "id": employee["id"],
            "name": employee["name"],
            "email": employee["email"],
            "department": employee["department"],
        } if employee else None,
    }


def _validate_status(value: str) -> str:
    if value not in TaskStatus.ALL:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(TaskStatus.ALL)}")
    return value


# =============================================================================
# Reads
# =============================================================================


@router.get("/api/tasks")
async def list_tasks(
    user: AuthUser = Depends(get_current_user),
    store: DataStore = Depends(get_store),
) -> list[dict[str, Any]]:
    """Owners see every task; employees see the tasks assigned to them."""
    if user.is_owner:
        tasks = await store.get_all_tasks()
    else:
        tasks = await store.find_tasks_by_employee(user.user_id)
    return [await _with_assignee(store, task) for task in tasks]


@router.get("/api/tasks/{task_id}")
async def get_task(
    task_id: str,
    user: AuthUser = Depends(get_current_user),
    store: DataStore = Depends(get_store),
) -> dict[str, Any]:
    task = await store.find_task_by_id(task_id)
    if task is None:
        raise NotFoundError("Task", task_id)
    if user.is_employee and task["assignedTo"] != user.user_id:
        raise ForbiddenError("view this task", user_id=user.user_id, task_id=task_id)
    return await _with_assignee(store, task)


# =============================================================================
# Owner endpoints
# =============================================================================


@router.post("/api/tasks", status_code=status.HTTP_201_CREATED)
async def create_task(
    body: TaskCreate,
    owner: AuthUser = Depends(require_owner),
    store: DataStore = Depends(get_store),
    event_router: EventRouter = Depends(get_event_router),
) -> dict[str, Any]:
    """Create a task for an active employee."""
    await _require_active_employee(store, body.assigned_to)

    data = body.to_wire()
    data["createdBy"] = owner.user_id
    task = await store.create_task(data)

    await event_router.route(
        DomainEvent.TASK_CREATED,
        {"task": task, "assignedTo": task["assignedTo"]},
    )
    logger.info("Task created", task_id=task["id"], assigned_to=task["assignedTo"])
    return task


@router.put("/api/tasks/{task_id}")
async def update_task(
    task_id: str,
    body: TaskUpdate,
    user: AuthUser = Depends(get_current_user),
    store: DataStore = Depends(get_store),
    event_router: EventRouter = Depends(get_event_router),
) -> dict[str, Any]:
    """
    Update a task.

    Owners may change any field. Employees may change only ``status``, and
    only on tasks assigned to them.
    """
    task = await store.find_task_by_id(task_id)
    if task is None:
        raise NotFoundError("Task", task_id)

    changes = body.to_wire()
    if user.is_employee:
        if task["assignedTo"] != user.user_id:
            raise ForbiddenError("update this task", user_id=user.user_id, task_id=task_id)
        if set(changes) - {"status"}:
            raise ForbiddenError("change fields other than status", user_id=user.user_id)

    if changes.get("status") is not None:
        _validate_status(changes["status"])
    if changes.get("assignedTo") and changes["assignedTo"] != task["assignedTo"]:
        await _require_active_employee(store, changes["assignedTo"])

    updated = await store.update_task(task_id, changes)
    if updated is None:
        raise NotFoundError("Task", task_id)

    await event_router.route(
        DomainEvent.TASK_UPDATED,
        {"task": updated, "updatedBy": user.user_id, "updatedByRole": user.role},
    )
    logger.info("Task updated", task_id=task_id, user_id=user.user_id, fields=sorted(changes))
    return updated


@router.delete("/api/tasks/{task_id}")
async def delete_task(
    task_id: str,
    owner: AuthUser = Depends(require_owner),
    store: DataStore = Depends(get_store),
    event_router: EventRouter = Depends(get_event_router),
) -> dict[str, Any]:
    deleted = await store.delete_task(task_id)
    if deleted is None:
        raise NotFoundError("Task", task_id)

    await event_router.route(
        DomainEvent.TASK_DELETED,
        {"taskId": task_id, "assignedTo": deleted["assignedTo"], "task": deleted},
    )
    logger.info("Task deleted", task_id=task_id, owner_id=owner.user_id)
    return {"success": True, "taskId": task_id}


# =============================================================================
# Employee endpoints
# =============================================================================


@router.get("/api/employee/tasks")
async def list_my_tasks(
    employee: AuthUser = Depends(require_employee),
    store: DataStore = Depends(get_store),
) -> list[dict[str, Any]]:
    return await store.find_tasks_by_employee(employee.user_id)


@router.put("/api/employee/tasks/{task_id}/status")
async def update_task_status(
    task_id: str,
    body: TaskStatusUpdate,
    employee: AuthUser = Depends(require_employee),
    store: DataStore = Depends(get_store),
    event_router: EventRouter = Depends(get_event_router),
) -> dict[str, Any]:
    """Move one of the caller's tasks to a new status."""
    new_status = _validate_status(body.status)

    task = await store.find_task_by_id(task_id)
    if task is None:
        raise NotFoundError("Task", task_id)
    if task["assignedTo"] != employee.user_id:
        raise ForbiddenError("update this task", user_id=employee.user_id, task_id=task_id)

    updated = await store.update_task(task_id, {"status": new_status})
    if updated is None:
        raise NotFoundError("Task", task_id)

    await event_router.route(
        DomainEvent.TASK_STATUS_UPDATED,
        {"task": updated, "updatedBy": employee.user_id},
    )
    logger.info("Task status updated", task_id=task_id, status=new_status)
    return updated
