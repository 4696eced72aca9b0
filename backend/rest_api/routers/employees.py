"""
Employees router.
Owner-only management of employee accounts. Each change is pushed to
every online owner.
"""

from typing import Any

from fastapi import APIRouter, Depends, status

from rest_api.dependencies import get_event_router, get_store
from rest_api.repositories.store import DataStore
from shared.config.logging import mask_email, rest_api_logger as logger
from shared.security.auth import AuthUser, require_owner
from shared.utils.exceptions import ConflictError, NotFoundError
from shared.utils.schemas import EmployeeCreate, EmployeeUpdate
from ws_gateway.components.events.router import EventRouter
from ws_gateway.components.events.types import DomainEvent


router = APIRouter(prefix="/api/employees", tags=["employees"])


@router.get("")
async def list_employees(
    owner: AuthUser = Depends(require_owner),
    store: DataStore = Depends(get_store),
) -> list[dict[str, Any]]:
    """Active employees, by name."""
    return await store.get_active_employees()


@router.get("/{employee_id}")
async def get_employee(
    employee_id: str,
    owner: AuthUser = Depends(require_owner),
    store: DataStore = Depends(get_store),
) -> dict[str, Any]:
    """One employee, active or not."""
    employee = await store.find_employee_by_id(employee_id)
    if employee is None:
        raise NotFoundError("Employee", employee_id)
    return employee


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_employee(
    body: EmployeeCreate,
    owner: AuthUser = Depends(require_owner),
    store: DataStore = Depends(get_store),
    event_router: EventRouter = Depends(get_event_router),
) -> dict[str, Any]:
    email = body.email.lower()
    if await store.find_employee_by_email(email) is not None:
        raise ConflictError("Employee with this email already exists", email=mask_email(email))

    data = body.to_wire()
    data["email"] = email
    employee = await store.create_employee(data, created_by=owner.user_id)

    await event_router.route(DomainEvent.EMPLOYEE_ADDED, {"employee": employee})
    logger.info("Employee created", employee_id=employee["id"], owner_id=owner.user_id)
    return employee


@router.put("/{employee_id}")
async def update_employee(
    employee_id: str,
    body: EmployeeUpdate,
    owner: AuthUser = Depends(require_owner),
    store: DataStore = Depends(get_store),
    event_router: EventRouter = Depends(get_event_router),
) -> dict[str, Any]:
    changes = body.to_wire()
    if changes.get("email"):
        changes["email"] = changes["email"].lower()
        existing = await store.find_employee_by_email(changes["email"])
        if existing is not None and existing["id"] != employee_id:
            raise ConflictError(
                "Employee with this email already exists",
                email=mask_email(changes["email"]),
            )

    employee = await store.update_employee(employee_id, changes)
    if employee is None:
        raise NotFoundError("Employee", employee_id)

    await event_router.route(DomainEvent.EMPLOYEE_UPDATED, {"employee": employee})
    logger.info("Employee updated", employee_id=employee_id, fields=sorted(changes))
    return employee


@router.delete("/{employee_id}")
async def delete_employee(
    employee_id: str,
    owner: AuthUser = Depends(require_owner),
    store: DataStore = Depends(get_store),
    event_router: EventRouter = Depends(get_event_router),
) -> dict[str, Any]:
    """Deactivate an employee. Their tasks and messages are kept."""
    if not await store.deactivate_employee(employee_id):
        raise NotFoundError("Employee", employee_id)

    await event_router.route(DomainEvent.EMPLOYEE_DELETED, {"employeeId": employee_id})
    logger.info("Employee deactivated", employee_id=employee_id, owner_id=owner.user_id)
    return {"success": True, "employeeId": employee_id}
