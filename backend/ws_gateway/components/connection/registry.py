"""
Connection Registry - who is online and how to reach them.

Policy: at most one live route per user, last writer wins. A second
connection for the same user silently replaces the first as the user's
route (and in the user's private channel); the older socket stays open
until it disconnects on its own, but no directed event reaches it.

Because of that policy, unregister must check that the handle being
removed is still the registered one: the disconnect of a replaced socket
must never evict its replacement.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING

from shared.config.logging import get_logger
from ws_gateway.components.connection.rooms import RoomManager, private_channel

if TYPE_CHECKING:
    from fastapi import WebSocket

logger = get_logger(__name__)


class ConnectionRegistry:
    """
    In-process map of user ID -> live connection and role.

    Indices maintained:
    - by_user: user_id -> WebSocket (current route)
    - roles: user_id -> role
    - ws_to_user: WebSocket -> user_id (tag of every live connection,
      including replaced ones that have not disconnected yet)
    """

    def __init__(self, rooms: RoomManager | None = None) -> None:
        self._rooms = rooms if rooms is not None else RoomManager()
        self._by_user: dict[str, "WebSocket"] = {}
        self._roles: dict[str, str] = {}
        self._ws_to_user: dict["WebSocket", str] = {}
        self._replacements = 0

    @property
    def rooms(self) -> RoomManager:
        return self._rooms

    @property
    def by_user(self) -> MappingProxyType[str, "WebSocket"]:
        """Current route per user (immutable view)."""
        return MappingProxyType(self._by_user)

    # =========================================================================
    # Mutations
    # =========================================================================

    def register(self, user_id: str, role: str, ws: "WebSocket") -> "WebSocket | None":
        """
        Make ``ws`` the route for ``user_id`` and join its private channel.

        Returns:
            The handle that was replaced, or None.
        """
        previous = self._by_user.get(user_id)

        # Commit the route before touching channel membership
        self._by_user[user_id] = ws
        self._roles[user_id] = role
        self._ws_to_user[ws] = user_id

        channel = private_channel(user_id)
        if previous is not None and previous is not ws:
            self._rooms.leave(previous, channel)
            self._replacements += 1
            logger.info("Connection replaced for user", user_id=user_id, role=role)
        self._rooms.join(ws, channel)

        return previous if previous is not ws else None

    def unregister(self, user_id: str, ws: "WebSocket") -> bool:
        """
        Forget ``ws``. The user's route and role are removed only if ``ws``
        is still the registered handle.

        Always drops every channel membership of ``ws``.

        Returns:
            True if the user's registry entry was removed.
        """
        self._ws_to_user.pop(ws, None)
        self._rooms.leave_all(ws)

        if self._by_user.get(user_id) is not ws:
            logger.debug("Stale unregister ignored", user_id=user_id)
            return False

        del self._by_user[user_id]
        self._roles.pop(user_id, None)
        return True

    # =========================================================================
    # Queries
    # =========================================================================

    def lookup(self, user_id: str) -> "WebSocket | None":
        """Current connection for ``user_id``; None means offline."""
        return self._by_user.get(user_id)

    def is_online(self, user_id: str) -> bool:
        return user_id in self._by_user

    def list_online(self) -> frozenset[str]:
        return frozenset(self._by_user)

    def role_of(self, user_id: str) -> str | None:
        return self._roles.get(user_id)

    def user_of(self, ws: "WebSocket") -> str | None:
        """User the connection authenticated as (also for replaced sockets)."""
        return self._ws_to_user.get(ws)

    def users_with_role(self, role: str) -> list[str]:
        return [user_id for user_id, r in self._roles.items() if r == role]

    def connections_with_role(self, role: str) -> list["WebSocket"]:
        """Current route of every online user holding ``role``."""
        return [self._by_user[user_id] for user_id in self.users_with_role(role)]

    def all_connections(self) -> set["WebSocket"]:
        """Every tagged live connection, replaced ones included."""
        return set(self._ws_to_user)

    def get_stats(self) -> dict[str, int]:
        stats = {
            "online_users": len(self._by_user),
            "connections": len(self._ws_to_user),
            "replacements": self._replacements,
        }
        for role in set(self._roles.values()):
            stats[f"online_{role}s"] = len(self.users_with_role(role))
        return stats
