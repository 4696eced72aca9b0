"""
Room/Channel Manager.

Channels are virtual groups of live connections:
- one private channel per user (``user:<id>``), joined on register
- one chat channel per pair of users (``chat:<lo>:<hi>``), joined on request

Nothing here is persisted. A channel exists only while it has members and
disappears when its last member leaves.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from shared.config.logging import get_logger
from shared.utils.exceptions import InvalidEventPayload

if TYPE_CHECKING:
    from fastapi import WebSocket

logger = get_logger(__name__)

CHANNEL_DELIMITER: Final[str] = ":"
CHAT_PREFIX: Final[str] = "chat"
PRIVATE_PREFIX: Final[str] = "user"


def channel_id(user_a: str, user_b: str) -> str:
    """
    Shared channel id for two users.

    Order independent: both participants compute the same id without a
    lookup table.

        channel_id("b7", "a1") == channel_id("a1", "b7") == "chat:a1:b7"
    """
    low, high = sorted((str(user_a), str(user_b)))
    return CHANNEL_DELIMITER.join((CHAT_PREFIX, low, high))


def private_channel(user_id: str) -> str:
    """Channel used to reach one user directly."""
    return f"{PRIVATE_PREFIX}{CHANNEL_DELIMITER}{user_id}"


class RoomManager:
    """
    Channel membership tables.

    Indices maintained:
    - members: channel -> set[WebSocket]
    - memberships: WebSocket -> set[channel] (reverse, for disconnect)

    Mutated only from event handlers on the event loop, between awaits.
    """

    def __init__(self) -> None:
        self._members: dict[str, set["WebSocket"]] = {}
        self._memberships: dict["WebSocket", set[str]] = {}

    @property
    def channels(self) -> MappingProxyType[str, set["WebSocket"]]:
        """Live channels (immutable view)."""
        return MappingProxyType(self._members)

    # =========================================================================
    # Queries
    # =========================================================================

    def members(self, channel: str) -> frozenset["WebSocket"]:
        return frozenset(self._members.get(channel, ()))

    def channels_of(self, ws: "WebSocket") -> frozenset[str]:
        return frozenset(self._memberships.get(ws, ()))

    def has_channel(self, channel: str) -> bool:
        return channel in self._members

    # =========================================================================
    # Mutations
    # =========================================================================

    def join(self, ws: "WebSocket", channel: str) -> bool:
        """Add ``ws`` to ``channel``. Returns False if it was already a member."""
        members = self._members.setdefault(channel, set())
        if ws in members:
            return False
        members.add(ws)
        self._memberships.setdefault(ws, set()).add(channel)
        return True

    def join_chat(self, ws: "WebSocket", user_id: str, other_user_id: str | None) -> str:
        """
        Join the pairwise channel of ``user_id`` (the connection's own
        identity) and ``other_user_id``.

        Any authenticated connection may join a channel with any other id;
        membership grants no data access.

        Raises:
            InvalidEventPayload: ``other_user_id`` is missing or blank.
        """
        if other_user_id is None or not str(other_user_id).strip():
            raise InvalidEventPayload("join-chat", "otherUserId is required")

        channel = channel_id(user_id, str(other_user_id).strip())
        if self.join(ws, channel):
            logger.debug("Joined chat channel", user_id=user_id, channel=channel)
        return channel

    def leave(self, ws: "WebSocket", channel: str) -> bool:
        members = self._members.get(channel)
        if members is None or ws not in members:
            return False

        members.discard(ws)
        if not members:
            del self._members[channel]

        joined = self._memberships.get(ws)
        if joined is not None:
            joined.discard(channel)
            if not joined:
                del self._memberships[ws]
        return True

    def leave_all(self, ws: "WebSocket") -> set[str]:
        """Drop every membership of ``ws``. Returns the channels it left."""
        joined = self._memberships.pop(ws, set())
        for channel in joined:
            members = self._members.get(channel)
            if members is None:
                continue
            members.discard(ws)
            if not members:
                del self._members[channel]
        return joined

    def get_stats(self) -> dict[str, int]:
        chat_prefix = CHAT_PREFIX + CHANNEL_DELIMITER
        return {
            "channels": len(self._members),
            "chat_channels": sum(1 for c in self._members if c.startswith(chat_prefix)),
            "memberships": sum(len(m) for m in self._members.values()),
        }
