"""
Data-access collaborator for owners, employees, tasks and messages.

Both the REST routers and the WebSocket gateway persist through a single
DataStore. Every public method is a coroutine that runs a synchronous
SQLAlchemy session on a worker thread, so a slow query only suspends the
event that issued it. Results are returned as plain dicts (the wire shape)
so nothing ORM-bound crosses back to the event loop.

Usage:
    store = DataStore()
    message = await store.create_message({"from": a, "to": b, "message": "hi"})
    history = await store.find_messages_between_users(a, b, limit=50)
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, TypeVar

from sqlalchemy import String, and_, cast, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from shared.config.constants import Collections, MessageType, Roles, TaskPriority, TaskStatus
from shared.config.logging import get_logger
from shared.infrastructure.db import SessionLocal, get_db_context, safe_commit
from shared.utils.exceptions import PersistenceError
from rest_api.models import Base, Employee, Message, Owner, Task

logger = get_logger(__name__)

T = TypeVar("T")

_MODELS: dict[str, type[Base]] = {
    Collections.OWNERS: Owner,
    Collections.EMPLOYEES: Employee,
    Collections.TASKS: Task,
    Collections.MESSAGES: Message,
}

# Columns callers may change through update_* (wire key -> column)
EMPLOYEE_FIELDS: dict[str, str] = {
    "name": "name",
    "email": "email",
    "department": "department",
    "phoneNumber": "phone_number",
    "role": "position",
}
TASK_FIELDS: dict[str, str] = {
    "title": "title",
    "description": "description",
    "assignedTo": "assigned_to",
    "status": "status",
    "priority": "priority",
    "dueDate": "due_date",
}


class DataStore:
    """
    Async facade over synchronous SQLAlchemy sessions.

    Driver errors are logged and re-raised as PersistenceError; a write that
    was committed before the caller went away is never rolled back.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self._session_factory = session_factory or SessionLocal
        self._operations = 0
        self._errors = 0

    def create_schema(self) -> None:
        """Create missing tables on the bound engine."""
        Base.metadata.create_all(bind=self._session_factory.kw["bind"])

    # =========================================================================
    # Execution helper
    # =========================================================================

    async def _run(self, operation: str, fn: Callable[..., T], *args: Any) -> T:
        self._operations += 1
        try:
            return await asyncio.to_thread(self._in_session, fn, *args)
        except SQLAlchemyError as e:
            self._errors += 1
            logger.error(
                "Data store operation failed",
                operation=operation,
                error=str(e),
                exc_info=True,
            )
            raise PersistenceError(operation, type(e).__name__) from e

    def _in_session(self, fn: Callable[..., T], *args: Any) -> T:
        with get_db_context(self._session_factory) as db:
            return fn(db, *args)

    # =========================================================================
    # Generic lookups
    # =========================================================================

    async def find_by_id(self, collection: str, entity_id: str) -> dict[str, Any] | None:
        """
        Look up any entity by collection name ("owners", "employees", ...).

        Raises:
            ValueError: Unknown collection.
        """
        model = _MODELS.get(collection)
        if model is None:
            raise ValueError(f"Unknown collection: {collection}")
        return await self._run(f"find_by_id:{collection}", _get_dict, model, entity_id)

    async def find_owner_by_id(self, owner_id: str) -> dict[str, Any] | None:
        return await self._run("find_owner_by_id", _get_dict, Owner, owner_id)

    async def find_employee_by_id(self, employee_id: str) -> dict[str, Any] | None:
        return await self._run("find_employee_by_id", _get_dict, Employee, employee_id)

    async def find_employee_by_email(self, email: str) -> dict[str, Any] | None:
        def query(db: Session) -> dict[str, Any] | None:
            employee = db.scalar(select(Employee).where(Employee.email == email.lower()))
            return employee.to_dict() if employee else None

        return await self._run("find_employee_by_email", query)

    async def find_user(self, user_id: str) -> tuple[str, dict[str, Any]] | None:
        """
        Resolve an ID to (role, entity) across owners and employees.
        """
        def query(db: Session) -> tuple[str, dict[str, Any]] | None:
            owner = db.get(Owner, user_id)
            if owner is not None:
                return Roles.OWNER, owner.to_dict()
            employee = db.get(Employee, user_id)
            if employee is not None:
                return Roles.EMPLOYEE, employee.to_dict()
            return None

        return await self._run("find_user", query)

    # =========================================================================
    # Owners
    # =========================================================================

    async def create_owner(self, data: dict[str, Any]) -> dict[str, Any]:
        def write(db: Session) -> dict[str, Any]:
            owner = Owner(name=data.get("name"), phone_number=data.get("phoneNumber"))
            if data.get("id"):
                owner.id = data["id"]
            db.add(owner)
            safe_commit(db)
            return owner.to_dict()

        return await self._run("create_owner", write)

    # =========================================================================
    # Employees
    # =========================================================================

    async def create_employee(self, data: dict[str, Any], created_by: str | None) -> dict[str, Any]:
        """Create an active employee."""
        def write(db: Session) -> dict[str, Any]:
            employee = Employee(
                name=data["name"],
                email=data["email"].lower(),
                department=data.get("department"),
                phone_number=data.get("phoneNumber"),
                position=data.get("role") or "Employee",
                is_active=True,
                created_by=created_by,
            )
            if data.get("id"):
                employee.id = data["id"]
            db.add(employee)
            safe_commit(db)
            return employee.to_dict()

        return await self._run("create_employee", write)

    async def update_employee(self, employee_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
        def write(db: Session) -> dict[str, Any] | None:
            employee = db.get(Employee, employee_id)
            if employee is None:
                return None
            _apply_changes(employee, changes, EMPLOYEE_FIELDS)
            if "email" in changes and changes["email"]:
                employee.email = changes["email"].lower()
            employee.touch()
            safe_commit(db)
            return employee.to_dict()

        return await self._run("update_employee", write)

    async def deactivate_employee(self, employee_id: str) -> bool:
        """Soft delete. Returns False if the employee does not exist."""
        def write(db: Session) -> bool:
            employee = db.get(Employee, employee_id)
            if employee is None:
                return False
            employee.is_active = False
            employee.touch()
            safe_commit(db)
            return True

        return await self._run("deactivate_employee", write)

    async def get_active_employees(self) -> list[dict[str, Any]]:
        def query(db: Session) -> list[dict[str, Any]]:
            rows = db.scalars(
                select(Employee).where(Employee.is_active.is_(True)).order_by(Employee.name)
            ).all()
            return [e.to_dict() for e in rows]

        return await self._run("get_active_employees", query)

    # =========================================================================
    # Tasks
    # =========================================================================

    async def create_task(self, data: dict[str, Any]) -> dict[str, Any]:
        """Create a task; status defaults to pending, priority to medium."""
        def write(db: Session) -> dict[str, Any]:
            task = Task(
                title=data["title"],
                description=data.get("description"),
                assigned_to=data["assignedTo"],
                created_by=data["createdBy"],
                status=data.get("status") or TaskStatus.PENDING,
                priority=data.get("priority") or TaskPriority.MEDIUM,
                due_date=data.get("dueDate"),
            )
            db.add(task)
            safe_commit(db)
            return task.to_dict()

        return await self._run("create_task", write)

    async def find_task_by_id(self, task_id: str) -> dict[str, Any] | None:
        return await self._run("find_task_by_id", _get_dict, Task, task_id)

    async def find_tasks_by_employee(self, employee_id: str) -> list[dict[str, Any]]:
        def query(db: Session) -> list[dict[str, Any]]:
            rows = db.scalars(
                select(Task).where(Task.assigned_to == employee_id).order_by(Task.created_at)
            ).all()
            return [t.to_dict() for t in rows]

        return await self._run("find_tasks_by_employee", query)

    async def get_all_tasks(self) -> list[dict[str, Any]]:
        def query(db: Session) -> list[dict[str, Any]]:
            return [t.to_dict() for t in db.scalars(select(Task).order_by(Task.created_at)).all()]

        return await self._run("get_all_tasks", query)

    async def update_task(self, task_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
        def write(db: Session) -> dict[str, Any] | None:
            task = db.get(Task, task_id)
            if task is None:
                return None
            _apply_changes(task, changes, TASK_FIELDS)
            task.touch()
            safe_commit(db)
            return task.to_dict()

        return await self._run("update_task", write)

    async def delete_task(self, task_id: str) -> dict[str, Any] | None:
        """Hard delete. Returns the deleted task, or None if missing."""
        def write(db: Session) -> dict[str, Any] | None:
            task = db.get(Task, task_id)
            if task is None:
                return None
            snapshot = task.to_dict()
            db.delete(task)
            safe_commit(db)
            return snapshot

        return await self._run("delete_task", write)

    # =========================================================================
    # Messages
    # =========================================================================

    async def create_message(self, data: dict[str, Any]) -> dict[str, Any]:
        """
        Persist a chat message.

        Args:
            data: {"from", "to", "message", "type"}; type defaults to text.

        Returns:
            The stored message including id, participants and timestamp.
        """
        def write(db: Session) -> dict[str, Any]:
            message = Message(
                from_user_id=data["from"],
                to_user_id=data["to"],
                text=data["message"],
                type=data.get("type") or MessageType.TEXT,
            )
            db.add(message)
            safe_commit(db)
            return message.to_dict()

        return await self._run("create_message", write)

    async def find_message_by_id(self, message_id: str) -> dict[str, Any] | None:
        return await self._run("find_message_by_id", _get_dict, Message, message_id)

    async def delete_message(self, message_id: str) -> bool:
        def write(db: Session) -> bool:
            message = db.get(Message, message_id)
            if message is None:
                return False
            db.delete(message)
            safe_commit(db)
            return True

        return await self._run("delete_message", write)

    async def find_messages_between_users(
        self,
        user_a: str,
        user_b: str,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """
        Latest ``limit`` messages exchanged by two users, oldest first.
        """
        def query(db: Session) -> list[dict[str, Any]]:
            rows = db.scalars(
                select(Message)
                .where(
                    or_(
                        and_(Message.from_user_id == user_a, Message.to_user_id == user_b),
                        and_(Message.from_user_id == user_b, Message.to_user_id == user_a),
                    )
                )
                .order_by(Message.timestamp.desc())
                .limit(limit)
            ).all()
            return [m.to_dict() for m in reversed(rows)]

        return await self._run("find_messages_between_users", query)

    async def find_messages_for_user(
        self,
        user_id: str,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Every message ``user_id`` sent or received, newest first."""
        def query(db: Session) -> list[dict[str, Any]]:
            stmt = (
                select(Message)
                .where(_has_participant(user_id))
                .order_by(Message.timestamp.desc())
            )
            if limit is not None:
                stmt = stmt.limit(limit)
            return [m.to_dict() for m in db.scalars(stmt).all()]

        return await self._run("find_messages_for_user", query)

    async def find_conversations(self, user_id: str) -> list[dict[str, Any]]:
        """
        Latest message per counterpart, most recent conversation first.

        Returns:
            [{"userId": counterpart, "lastMessage": message}, ...]
        """
        messages = await self.find_messages_for_user(user_id)
        latest: dict[str, dict[str, Any]] = {}
        for message in messages:
            other = message["to"] if message["from"] == user_id else message["from"]
            latest.setdefault(other, message)
        return [{"userId": other, "lastMessage": message} for other, message in latest.items()]

    async def search_messages(
        self,
        user_id: str,
        text: str,
        other_user_id: str | None = None,
        limit: int = 20,
    ) -> list[dict[str, Any]]:
        """
        Case-insensitive substring search over ``user_id``'s messages,
        optionally narrowed to one conversation. Newest first.
        """
        def query(db: Session) -> list[dict[str, Any]]:
            stmt = select(Message).where(
                _has_participant(user_id),
                Message.text.icontains(text, autoescape=True),
            )
            if other_user_id:
                stmt = stmt.where(_has_participant(other_user_id))
            rows = db.scalars(stmt.order_by(Message.timestamp.desc()).limit(limit)).all()
            return [m.to_dict() for m in rows]

        return await self._run("search_messages", query)

    def get_stats(self) -> dict[str, int]:
        return {"operations": self._operations, "errors": self._errors}


def _get_dict(db: Session, model: type[Base], entity_id: str) -> dict[str, Any] | None:
    entity = db.get(model, entity_id)
    return entity.to_dict() if entity is not None else None


def _apply_changes(entity: Base, changes: dict[str, Any], allowed: dict[str, str]) -> None:
    for key, value in changes.items():
        column = allowed.get(key)
        if column is not None:
            setattr(entity, column, value)


def _has_participant(user_id: str):
    # participants is a JSON array of two ids; match the quoted element
    return cast(Message.participants, String).contains(f'"{user_id}"', autoescape=True)
