from typing import Dict, Optional
import logging
import uuid

from app.schemas.auth import Session
from app.schemas.user import UserPublic

logger = logging.getLogger(__name__)

class SessionStore:
    """
    Сессии в памяти процесса: непрозрачный токен -> снимок пользователя.
    Срока жизни нет, сессия удаляется только при logout.
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def create(self, user: UserPublic) -> Session:
        session = Session(token=str(uuid.uuid4()), user=user)
        self._sessions[session.token] = session
        logger.info(f"Session created for user {user.id}")
        return session

    def get(self, token: Optional[str]) -> Optional[Session]:
        if not token:
            return None
        return self._sessions.get(token)

    def destroy(self, token: Optional[str]) -> bool:
        if not token:
            return False
        return self._sessions.pop(token, None) is not None

    def clear(self) -> None:
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)
