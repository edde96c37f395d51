from passlib.context import CryptContext
from typing import List, Optional
import logging
import uuid

from app.core.errors import InvalidCredentials, UserAlreadyExists
from app.core.utils.locks import KeyedLocks
from app.schemas.user import UserCreate, UserPublic, UserRecord
from app.storage.base import KeyPathStore

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def email_key(email: str) -> str:
    """Email как безопасный сегмент пути"""
    return email.strip().lower().replace("/", "|").replace(".", ",")

class UserDirectory:
    """
    Пользователи лежат в том же хранилище, что и чаты:
    users/{id} и индекс user_emails/{email_key} -> id.
    """

    def __init__(self, store: KeyPathStore, default_avatar: str = "/default-avatar.png"):
        self.store = store
        self.default_avatar = default_avatar
        self._email_locks = KeyedLocks()

    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        if not user_id:
            return None
        raw = await self.store.get(f"users/{user_id}")
        return UserRecord.model_validate(raw) if raw else None

    async def find_by_identifier(self, identifier: str) -> Optional[UserRecord]:
        """identifier - email или id пользователя"""
        if not identifier:
            return None
        if "@" in identifier:
            user_id = await self.store.get(f"user_emails/{email_key(identifier)}")
            return await self.find_by_id(user_id) if user_id else None
        return await self.find_by_id(identifier)

    async def get_public(self, user_id: str) -> Optional[UserPublic]:
        user = await self.find_by_id(user_id)
        return user.public() if user else None

    async def create_user(self, user_data: UserCreate) -> UserRecord:
        # проверка и запись под замком email, иначе две регистрации пройдут обе
        async with self._email_locks.hold(email_key(user_data.email)):
            if await self.find_by_identifier(user_data.email):
                logger.warning(f"Registration failed: email {user_data.email} already exists")
                raise UserAlreadyExists("User with this email already exists.")

            user = UserRecord(
                id=str(uuid.uuid4()),
                username=user_data.username,
                email=user_data.email,
                avatar=self.default_avatar,
                hashed_password=pwd_context.hash(user_data.password),
            )
            await self.store.set(f"users/{user.id}", user.model_dump(mode="json", by_alias=True))
            await self.store.set(f"user_emails/{email_key(user.email)}", user.id)
        logger.info(f"User registered: {user.username} ({user.id})")
        return user

    async def authenticate(self, email: str, password: str) -> UserRecord:
        user = await self.find_by_identifier(email)
        if not user or not user.hashed_password or not pwd_context.verify(password, user.hashed_password):
            logger.warning(f"Failed login attempt for email: {email or 'unknown'}")
            raise InvalidCredentials("Incorrect email or password")
        return user

    async def list_users(self, exclude: Optional[str] = None) -> List[UserPublic]:
        raw = await self.store.get("users") or {}
        users = [UserRecord.model_validate(value).public() for value in raw.values() if value]
        return [user for user in users if user.id != exclude]
