"""Online/offline and typing signals derived from the connection registry."""

from typing import Optional
import logging

from app.realtime.emitter import Emitter, emit_to
from app.realtime.registry import ConnectionRegistry

logger = logging.getLogger(__name__)

USER_ONLINE = "user-online"
USER_OFFLINE = "user-offline"
ONLINE_USERS = "online-users"
USER_TYPING = "user-typing"
USER_STOP_TYPING = "user-stop-typing"


class PresenceNotifier:
    """
    Holds no state of its own. Presence is Online while the registry has at
    least one sid for the user and Offline otherwise.
    """

    def __init__(self, registry: ConnectionRegistry, emitter: Emitter):
        self.registry = registry
        self.emitter = emitter

    def _other_sids(self, user_id: str) -> list:
        return [
            sid
            for other_id in self.registry.online_users()
            if other_id != user_id
            for sid in self.registry.connections_for(other_id)
        ]

    async def connect(self, user_id: str, sid: str) -> bool:
        """Bind the connection; announce the user if this was the first one."""
        came_online = self.registry.register(user_id, sid)
        if came_online:
            await emit_to(self.emitter, USER_ONLINE, {"userId": user_id}, self._other_sids(user_id))
        others = [other_id for other_id in self.registry.online_users() if other_id != user_id]
        await emit_to(self.emitter, ONLINE_USERS, {"userIds": others}, [sid])
        return came_online

    async def disconnect(self, sid: str) -> Optional[str]:
        """Unbind the connection; announce the user if it was the last one."""
        user_id, went_offline = self.registry.unregister_connection(sid)
        if went_offline:
            await emit_to(self.emitter, USER_OFFLINE, {"userId": user_id}, self._other_sids(user_id))
        return user_id

    async def typing(self, from_user_id: str, to_user_id: str) -> int:
        return await emit_to(
            self.emitter, USER_TYPING, {"userId": from_user_id}, self.registry.connections_for(to_user_id)
        )

    async def stop_typing(self, from_user_id: str, to_user_id: str) -> int:
        return await emit_to(
            self.emitter, USER_STOP_TYPING, {"userId": from_user_id}, self.registry.connections_for(to_user_id)
        )
