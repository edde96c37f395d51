from dataclasses import dataclass
from typing import Optional
import logging

from app.core.errors import (
    EmptyMessage,
    InvalidMessage,
    InvalidParticipants,
    PartialIndexWrite,
    StorageUnavailable,
    WriteFailed,
)
from app.core.utils.locks import KeyedLocks
from app.realtime.emitter import Emitter, emit_to
from app.realtime.registry import ConnectionRegistry
from app.schemas.chat import Chat, Message
from app.schemas.user import UserPublic
from app.services.users import UserDirectory
from app.storage.chats import ChatIndexStore, MessageLogStore

logger = logging.getLogger(__name__)

MESSAGE_RECEIVED = "message-received"
MESSAGE_SENT = "message-sent"
CHAT_UPDATED = "chat-updated"

def _user_wire(user: Optional[UserPublic]) -> Optional[dict]:
    return user.model_dump(mode="json", by_alias=True) if user else None

@dataclass
class SendResult:
    message: Message
    chat: Chat
    is_new_chat: bool

class MessageRouter:
    """
    Отправка сообщения: находит или создает чат пары, дописывает сообщение
    в лог и рассылает события всем живым соединениям обоих участников.
    """

    def __init__(
        self,
        chat_index: ChatIndexStore,
        message_log: MessageLogStore,
        users: UserDirectory,
        registry: ConnectionRegistry,
        emitter: Emitter,
    ):
        self.chat_index = chat_index
        self.message_log = message_log
        self.users = users
        self.registry = registry
        self.emitter = emitter
        self._pair_locks = KeyedLocks()

    @staticmethod
    def validate(sender_id: Optional[str], receiver_id: Optional[str], text: Optional[str]) -> None:
        if not sender_id or not receiver_id:
            raise InvalidParticipants("Sender and receiver are required")
        if sender_id == receiver_id:
            raise InvalidParticipants("Sender and receiver must be different users")
        if text is not None and not isinstance(text, str):
            raise InvalidMessage(f"Message text must be a string, got {type(text).__name__}")
        if not text or not text.strip():
            raise EmptyMessage("Message text must not be empty")

    async def send_message(
        self,
        sender_id: str,
        receiver_id: str,
        text: str,
        chat_id: Optional[str] = None,
        origin_sid: Optional[str] = None,
    ) -> SendResult:
        self.validate(sender_id, receiver_id, text)

        chat, is_new_chat = await self._resolve_chat(sender_id, receiver_id, chat_id)
        sender = await self.users.get_public(sender_id)
        receiver = await self.users.get_public(receiver_id)

        message = Message(sender_id=sender_id, text=text)
        await self.message_log.append(chat.chat_id, message)
        logger.info(f"Message {message.id} appended to chat {chat.chat_id} ({sender_id} -> {receiver_id})")

        await self._notify(chat, message, receiver_id, sender, receiver, is_new_chat, origin_sid)
        return SendResult(message=message, chat=chat, is_new_chat=is_new_chat)

    async def _resolve_chat(self, sender_id: str, receiver_id: str, chat_id: Optional[str]):
        if chat_id:
            return Chat(chat_id=chat_id, participants=[sender_id, receiver_id]), False

        # поиск, создание и обе записи идут под замком пары, иначе два
        # встречных первых сообщения создадут два чата
        async with self._pair_locks.hold(tuple(sorted((sender_id, receiver_id)))):
            existing = await self.chat_index.find_with(sender_id, receiver_id)
            if existing is not None:
                return existing, False

            # после PartialIndexWrite чат мог остаться только у получателя
            orphaned = await self.chat_index.find_with(receiver_id, sender_id)
            if orphaned is not None:
                await self.repair_index(orphaned, sender_id)
                return orphaned, False

            chat = Chat(participants=[sender_id, receiver_id])
            await self.chat_index.add(sender_id, chat)
            try:
                await self.chat_index.add(receiver_id, chat)
            except (StorageUnavailable, WriteFailed) as e:
                logger.error(
                    f"Chat {chat.chat_id} indexed for {sender_id} but not for {receiver_id}: {e}"
                )
                raise PartialIndexWrite(chat, receiver_id, cause=e) from e
        logger.info(f"Chat {chat.chat_id} created for {sender_id} and {receiver_id}")
        return chat, True

    async def _notify(
        self,
        chat: Chat,
        message: Message,
        receiver_id: str,
        sender: Optional[UserPublic],
        receiver: Optional[UserPublic],
        is_new_chat: bool,
        origin_sid: Optional[str],
    ) -> None:
        sender_id = message.sender_id
        message_wire = message.to_wire()
        receiver_sids = self.registry.connections_for(receiver_id)
        sender_sids = self.registry.connections_for(sender_id)

        await emit_to(self.emitter, MESSAGE_RECEIVED, {
            "chatId": chat.chat_id,
            "message": message_wire,
            "senderId": sender_id,
            "receiverId": receiver_id,
            "isNewChat": is_new_chat,
            "otherUser": _user_wire(sender),
        }, receiver_sids)

        if origin_sid:
            await emit_to(self.emitter, MESSAGE_SENT, {
                "chatId": chat.chat_id,
                "message": message_wire,
                "receiverId": receiver_id,
                "isNewChat": is_new_chat,
                "otherUser": _user_wire(receiver),
            }, [origin_sid])

        chat_update = {
            "chatId": chat.chat_id,
            "lastMessage": message.text,
            "updatedAt": message_wire["createdAt"],
        }
        await emit_to(self.emitter, CHAT_UPDATED, {
            "chatUpdate": chat_update,
            "otherUserId": sender_id,
            "isNewChat": is_new_chat,
            "otherUser": _user_wire(sender),
        }, receiver_sids)
        await emit_to(self.emitter, CHAT_UPDATED, {
            "chatUpdate": chat_update,
            "otherUserId": receiver_id,
            "isNewChat": is_new_chat,
            "otherUser": _user_wire(receiver),
        }, sender_sids)

    async def repair_index(self, chat: Chat, user_id: str) -> bool:
        """Дописывает чат в индекс участника после PartialIndexWrite"""
        if not chat.includes(user_id):
            raise InvalidParticipants(f"User {user_id} is not a participant of chat {chat.chat_id}")
        repaired = await self.chat_index.add(user_id, chat)
        if repaired:
            logger.info(f"Chat {chat.chat_id} re-indexed for user {user_id}")
        return repaired
