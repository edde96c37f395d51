from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone
from typing import List, Optional
import uuid

from app.schemas.user import UserPublic

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        """JSON-совместимый dict с camelCase ключами"""
        return self.model_dump(mode="json", by_alias=True)

class Chat(CamelModel):
    """Запись чата в индексе пользователя (userchats/{user_id})"""
    chat_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    participants: List[str]
    created_at: datetime = Field(default_factory=utcnow)

    def includes(self, user_id: str) -> bool:
        return user_id in self.participants

    def other_participant(self, user_id: str) -> Optional[str]:
        for participant in self.participants:
            if participant != user_id:
                return participant
        return None

class Message(CamelModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    sender_id: str
    text: str
    created_at: datetime = Field(default_factory=utcnow)

class ChatSummary(Chat):
    """Проекция чата, пересчитывается из лога сообщений при каждом чтении"""
    last_message: str = ""
    message_count: int = 0
    updated_at: Optional[datetime] = None
    other_user: Optional[UserPublic] = None

class MessageCreate(CamelModel):
    receiver_id: str
    text: str
    chat_id: Optional[str] = None

class MessageRead(CamelModel):
    success: bool = True
    message: Message
    chat_id: str
    is_new_chat: bool

class ChatHistoryRead(CamelModel):
    user_id: str
    messages: List[Message]

class ChatListRead(CamelModel):
    current_user: UserPublic
    chats: List[ChatSummary]
    other_users: List[UserPublic]
