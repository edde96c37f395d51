from typing import List
import logging

from app.schemas.chat import ChatSummary, Message
from app.services.users import UserDirectory
from app.storage.chats import ChatIndexStore, MessageLogStore

logger = logging.getLogger(__name__)

class ChatHistory:
    """Только чтение: история переписки и список чатов пользователя"""

    def __init__(self, chat_index: ChatIndexStore, message_log: MessageLogStore, users: UserDirectory):
        self.chat_index = chat_index
        self.message_log = message_log
        self.users = users

    async def load_history(self, requesting_user_id: str, counterpart_user_id: str) -> List[Message]:
        """Пустой список, если переписки еще не было"""
        chat = await self.chat_index.find_with(requesting_user_id, counterpart_user_id)
        if chat is None:
            return []
        messages = await self.message_log.messages(chat.chat_id)
        logger.debug(f"Loaded {len(messages)} messages of chat {chat.chat_id} for {requesting_user_id}")
        return messages

    async def list_chats(self, user_id: str) -> List[ChatSummary]:
        """
        Проекция индекса: последнее сообщение, число сообщений и собеседник
        пересчитываются из лога при каждом вызове.
        """
        summaries = []
        for chat in await self.chat_index.chats_for(user_id):
            messages = await self.message_log.messages(chat.chat_id)
            last = messages[-1] if messages else None
            other_id = chat.other_participant(user_id)
            summaries.append(ChatSummary(
                **chat.model_dump(),
                last_message=last.text if last else "",
                message_count=len(messages),
                updated_at=last.created_at if last else chat.created_at,
                other_user=await self.users.get_public(other_id) if other_id else None,
            ))

        summaries.sort(key=lambda s: s.updated_at, reverse=True)
        return summaries
