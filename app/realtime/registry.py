"""Track live Socket.IO connections per user."""

from typing import Dict, List, Optional, Set, Tuple
import logging

from app.core.errors import ConnectionAlreadyBound

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    Map each user id to the set of sids currently bound to it.

    Every method is synchronous: a check-and-mutate sequence never crosses
    an ``await``, so it cannot interleave with another handler on the loop.
    """

    def __init__(self) -> None:
        self._connections: Dict[str, Set[str]] = {}
        self._owners: Dict[str, str] = {}

    def register(self, user_id: str, sid: str) -> bool:
        """Bind ``sid`` to ``user_id``. Returns True if the user just came online."""
        owner = self._owners.get(sid)
        if owner is not None and owner != user_id:
            raise ConnectionAlreadyBound(f"Connection {sid} is already bound to user {owner}")

        active = self._connections.get(user_id)
        came_online = not active
        if active is None:
            active = set()
            self._connections[user_id] = active
        active.add(sid)
        self._owners[sid] = user_id
        if came_online:
            logger.info(f"User {user_id} is online")
        return came_online

    def unregister(self, user_id: str, sid: str) -> bool:
        """Unbind ``sid``. Returns True if it was the user's last connection."""
        active = self._connections.get(user_id)
        if active is None or sid not in active:
            return False
        active.discard(sid)
        self._owners.pop(sid, None)
        if not active:
            del self._connections[user_id]
            logger.info(f"User {user_id} is offline")
            return True
        return False

    def unregister_connection(self, sid: str) -> Tuple[Optional[str], bool]:
        """Unbind ``sid`` from whichever user owns it."""
        user_id = self._owners.get(sid)
        if user_id is None:
            return None, False
        return user_id, self.unregister(user_id, sid)

    def connections_for(self, user_id: str) -> List[str]:
        return sorted(self._connections.get(user_id, ()))

    def owner_of(self, sid: str) -> Optional[str]:
        return self._owners.get(sid)

    def is_online(self, user_id: str) -> bool:
        return bool(self._connections.get(user_id))

    def online_users(self) -> List[str]:
        return list(self._connections)

    def clear(self) -> None:
        self._connections.clear()
        self._owners.clear()
