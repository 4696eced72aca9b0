"""
Messages router.
Chat history, REST message creation and message deletion.

REST-created messages go through the same create-and-route operation as
socket ``send-message``, so an online recipient gets ``new-message`` either
way.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, status

from rest_api.dependencies import get_event_router, get_store
from rest_api.repositories.store import DataStore
from shared.config.constants import Roles
from shared.config.logging import rest_api_logger as logger
from shared.config.settings import settings
from shared.security.auth import AuthUser, get_current_user
from shared.utils.exceptions import (
    ForbiddenError,
    InvalidEventPayload,
    NotFoundError,
    ValidationError,
)
from shared.utils.schemas import MessageCreate
from ws_gateway.components.events.router import EventRouter, validate_send_message
from ws_gateway.components.events.types import DomainEvent


router = APIRouter(prefix="/api/messages", tags=["messages"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_message(
    body: MessageCreate,
    user: AuthUser = Depends(get_current_user),
    store: DataStore = Depends(get_store),
    event_router: EventRouter = Depends(get_event_router),
) -> dict[str, Any]:
    """
    Send a chat message.

    The recipient must exist; an employee recipient must be active.
    """
    try:
        to_user_id, text, message_type = validate_send_message(body.to_wire())
    except InvalidEventPayload as e:
        raise ValidationError(e.reason, user_id=user.user_id) from e

    found = await store.find_user(to_user_id)
    if found is None:
        raise NotFoundError("Recipient", to_user_id)
    role, recipient = found
    if role == Roles.EMPLOYEE and not recipient.get("isActive"):
        raise ValidationError("Recipient is not active", to_user_id=to_user_id)

    message = await event_router.create_and_route_message(
        user.user_id, user.role, to_user_id, text, message_type
    )
    logger.info("Message created", message_id=message["id"], from_user_id=user.user_id)
    return message


def _counterpart(role: str, entity: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": entity["id"],
        "name": entity.get("name") or f"Owner {entity.get('phoneNumber')}",
        "role": role,
        "email": entity.get("email"),
        "department": entity.get("department"),
    }


@router.get("/conversations/list")
async def list_conversations(
    user: AuthUser = Depends(get_current_user),
    store: DataStore = Depends(get_store),
) -> list[dict[str, Any]]:
    """
    One entry per person the caller has exchanged messages with, carrying
    the latest message. Most recent conversation first; counterparts that
    no longer exist are skipped.
    """
    conversations = []
    for entry in await store.find_conversations(user.user_id):
        found = await store.find_user(entry["userId"])
        if found is None:
            continue
        last = entry["lastMessage"]
        conversations.append({
            "userId": entry["userId"],
            "user": _counterpart(*found),
            "lastMessage": {
                "id": last["id"],
                "message": last["message"],
                "timestamp": last["timestamp"],
                "from": last["from"],
                "type": last["type"],
            },
        })
    return conversations


@router.get("/search")
async def search_messages(
    q: str = Query(default="", max_length=200),
    other_user_id: str | None = Query(default=None, alias="userId"),
    limit: int = Query(default=20, ge=1, le=settings.history_max_limit),
    user: AuthUser = Depends(get_current_user),
    store: DataStore = Depends(get_store),
) -> list[dict[str, Any]]:
    """Search the caller's messages, optionally within one conversation."""
    if len(q.strip()) < 2:
        raise ValidationError("Search query must be at least 2 characters long", user_id=user.user_id)
    return await store.search_messages(user.user_id, q.strip(), other_user_id, limit=limit)


@router.get("/{user_id}")
async def get_conversation(
    user_id: str,
    limit: int = Query(default=settings.history_default_limit, ge=1, le=settings.history_max_limit),
    user: AuthUser = Depends(get_current_user),
    store: DataStore = Depends(get_store),
) -> list[dict[str, Any]]:
    """Conversation between the caller and ``user_id``, oldest first."""
    return await store.find_messages_between_users(user.user_id, user_id, limit=limit)


@router.delete("/{message_id}")
async def delete_message(
    message_id: str,
    user: AuthUser = Depends(get_current_user),
    store: DataStore = Depends(get_store),
    event_router: EventRouter = Depends(get_event_router),
) -> dict[str, Any]:
    """Delete a message. Only its sender may do this."""
    message = await store.find_message_by_id(message_id)
    if message is None:
        raise NotFoundError("Message", message_id)
    if message["from"] != user.user_id:
        raise ForbiddenError("delete this message", user_id=user.user_id, message_id=message_id)

    await store.delete_message(message_id)
    await event_router.route(
        DomainEvent.MESSAGE_DELETED,
        {"messageId": message_id, "from": message["from"], "to": message["to"]},
    )
    logger.info("Message deleted", message_id=message_id, user_id=user.user_id)
    return {"success": True, "messageId": message_id}
