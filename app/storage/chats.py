from typing import List, Optional
import logging

from app.core.utils.locks import KeyedLocks
from app.schemas.chat import Chat, Message
from app.storage.base import KeyPathStore

logger = logging.getLogger(__name__)

class ChatIndexStore:
    """userchats/{user_id} -> {"chats": [...]}: список чатов пользователя"""

    def __init__(self, store: KeyPathStore):
        self.store = store
        # чтение и запись индекса в add() идут под замком пользователя
        self._user_locks = KeyedLocks()

    @staticmethod
    def _path(user_id: str) -> str:
        return f"userchats/{user_id}"

    async def chats_for(self, user_id: str) -> List[Chat]:
        data = await self.store.get(self._path(user_id)) or {}
        raw_chats = data.get("chats") or []
        if isinstance(raw_chats, dict):
            raw_chats = list(raw_chats.values())
        return [Chat.model_validate(raw) for raw in raw_chats if raw]

    async def find_with(self, user_id: str, counterpart_id: str) -> Optional[Chat]:
        """Ищет в индексе user_id чат, где участвует counterpart_id"""
        for chat in await self.chats_for(user_id):
            if chat.includes(counterpart_id):
                return chat
        return None

    async def contains(self, user_id: str, chat_id: str) -> bool:
        return any(chat.chat_id == chat_id for chat in await self.chats_for(user_id))

    async def add(self, user_id: str, chat: Chat) -> bool:
        """Добавляет чат в индекс; повторное добавление того же chat_id ничего не меняет"""
        async with self._user_locks.hold(user_id):
            chats = await self.chats_for(user_id)
            if any(existing.chat_id == chat.chat_id for existing in chats):
                return False
            chats.append(chat)
            await self.store.set(self._path(user_id), {"chats": [c.to_wire() for c in chats]})
        logger.debug(f"Chat {chat.chat_id} indexed for user {user_id}")
        return True

class MessageLogStore:
    """chats/{chat_id}/messages/{key} -> сообщение; только дозапись"""

    def __init__(self, store: KeyPathStore):
        self.store = store

    @staticmethod
    def _path(chat_id: str) -> str:
        return f"chats/{chat_id}/messages"

    async def append(self, chat_id: str, message: Message) -> str:
        return await self.store.append(self._path(chat_id), message.to_wire())

    async def messages(self, chat_id: str) -> List[Message]:
        """Сообщения по возрастанию created_at; при равенстве - в порядке вставки"""
        raw = await self.store.get(self._path(chat_id)) or {}
        values = raw.values() if isinstance(raw, dict) else raw
        messages = [Message.model_validate(value) for value in values if value]
        # sorted() стабилен, порядок вставки сохраняется
        return sorted(messages, key=lambda m: m.created_at)
