"""
Доменные ошибки чата.

Каждая ошибка несет короткий `code`, который уходит клиенту в событии
`error` (Socket.IO) или в `detail` HTTP-ответа.
"""
from typing import Optional


class ChatError(Exception):
    code = "ChatError"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.code
        super().__init__(self.message)

    def to_payload(self) -> dict:
        return {"message": self.message, "code": self.code}


class InvalidParticipants(ChatError):
    code = "InvalidParticipants"


class EmptyMessage(ChatError):
    code = "EmptyMessage"


class InvalidMessage(ChatError):
    code = "InvalidMessage"


class NotAuthenticated(ChatError):
    code = "NotAuthenticated"


class StorageUnavailable(ChatError):
    code = "StorageUnavailable"


class WriteFailed(ChatError):
    code = "WriteFailed"


class PartialIndexWrite(ChatError):
    """Чат записан в индекс только одного участника."""

    code = "PartialIndexWrite"

    def __init__(self, chat, missing_user_id: str, cause: Optional[Exception] = None):
        self.chat = chat
        self.missing_user_id = missing_user_id
        self.cause = cause
        super().__init__(
            f"Chat {chat.chat_id} was indexed for one participant only; "
            f"index of user {missing_user_id} is missing it"
        )


class UnknownEvent(ChatError):
    code = "UnknownEvent"


class ConnectionAlreadyBound(ChatError):
    code = "ConnectionAlreadyBound"


class UserAlreadyExists(ChatError):
    code = "UserAlreadyExists"


class InvalidCredentials(ChatError):
    code = "InvalidCredentials"
