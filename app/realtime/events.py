"""Socket.IO event handlers for the chat channel.

Handlers are plain coroutines collected in one ``event name -> handler``
mapping and bound to the server once at startup; every connection shares
the same set. Clients must emit ``join`` before any other chat event so the
connection gets bound to a user.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional
import logging

from app.core.container import Services
from app.core.errors import (
    ChatError,
    ConnectionAlreadyBound,
    EmptyMessage,
    InvalidMessage,
    InvalidParticipants,
    NotAuthenticated,
    UnknownEvent,
)
from app.realtime.emitter import Emitter, emit_to

logger = logging.getLogger(__name__)

MESSAGES_LOADED = "messages-loaded"
ERROR = "error"

_CLIENT_ERRORS = (
    InvalidParticipants,
    EmptyMessage,
    InvalidMessage,
    NotAuthenticated,
    ConnectionAlreadyBound,
)


def _field(data: Any, name: str) -> Optional[str]:
    """Payloads may be an object or, for single-field events, a bare string."""
    if isinstance(data, dict):
        value = data.get(name)
    elif isinstance(data, str):
        value = data
    else:
        value = None
    return str(value) if value not in (None, "") else None


class ChatSocketHandlers:
    def __init__(self, services: Services, emitter: Emitter):
        self.services = services
        self.emitter = emitter

    def handlers(self) -> Dict[str, Callable]:
        return {
            "connect": self.on_connect,
            "disconnect": self.on_disconnect,
            "join": self.on_join,
            "send-message": self.on_send_message,
            "user-typing": self.on_typing,
            "user-stop-typing": self.on_stop_typing,
            "load-messages": self.on_load_messages,
            "*": self.on_unknown_event,
        }

    def bind(self, sio) -> None:
        for event, handler in self.handlers().items():
            sio.on(event, handler)

    async def _error(self, sid: str, error: ChatError) -> None:
        if isinstance(error, _CLIENT_ERRORS):
            logger.warning(f"Rejected event from {sid}: {error.code}: {error.message}")
        else:
            logger.error(f"Event from {sid} failed: {error.code}: {error.message}")
        await emit_to(self.emitter, ERROR, error.to_payload(), [sid])

    def _require_user(self, sid: str) -> str:
        user_id = self.services.registry.owner_of(sid)
        if user_id is None:
            raise NotAuthenticated("Join with a user id before sending chat events")
        return user_id

    async def on_connect(self, sid: str, environ: dict, auth: Any = None) -> None:
        logger.info(f"Socket connected: {sid}")

    async def on_disconnect(self, sid: str, reason: Any = None) -> None:
        user_id = await self.services.presence.disconnect(sid)
        logger.info(f"Socket disconnected: {sid} (user {user_id or 'not joined'})")

    async def on_join(self, sid: str, data: Any) -> None:
        user_id = _field(data, "userId")
        if user_id is None:
            await self._error(sid, NotAuthenticated("join requires a userId"))
            return

        # join trusts the client-supplied userId; it is not checked against the login session
        previous = self.services.registry.owner_of(sid)
        if previous is not None and previous != user_id:
            await self.services.presence.disconnect(sid)
        await self.services.presence.connect(user_id, sid)
        logger.info(f"Socket {sid} joined as user {user_id}")

    async def on_send_message(self, sid: str, data: Any) -> None:
        data = data if isinstance(data, dict) else {}
        try:
            sender_id = self._require_user(sid)
            await self.services.router.send_message(
                sender_id,
                _field(data, "receiverId"),
                data.get("text"),
                chat_id=_field(data, "chatId"),
                origin_sid=sid,
            )
        except ChatError as e:
            await self._error(sid, e)

    async def on_typing(self, sid: str, data: Any) -> None:
        try:
            user_id = self._require_user(sid)
        except ChatError as e:
            await self._error(sid, e)
            return
        receiver_id = _field(data, "receiverId")
        if receiver_id:
            await self.services.presence.typing(user_id, receiver_id)

    async def on_stop_typing(self, sid: str, data: Any) -> None:
        try:
            user_id = self._require_user(sid)
        except ChatError as e:
            await self._error(sid, e)
            return
        receiver_id = _field(data, "receiverId")
        if receiver_id:
            await self.services.presence.stop_typing(user_id, receiver_id)

    async def on_load_messages(self, sid: str, data: Any) -> None:
        counterpart_id = _field(data, "userId")
        try:
            user_id = self._require_user(sid)
            if counterpart_id is None:
                raise InvalidParticipants("load-messages requires a userId")
            messages = await self.services.history.load_history(user_id, counterpart_id)
        except ChatError as e:
            await self._error(sid, e)
            return

        await emit_to(self.emitter, MESSAGES_LOADED, {
            "userId": counterpart_id,
            "messages": [message.to_wire() for message in messages],
        }, [sid])

    async def on_unknown_event(self, event: str, sid: str, data: Any = None) -> None:
        logger.debug(f"Ignoring event from {sid}: {UnknownEvent.code} {event!r}")
