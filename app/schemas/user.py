from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone
from typing import Optional

class UserBase(BaseModel):
    username: str
    email: EmailStr

class UserCreate(UserBase):
    password: str

    @field_validator('username')
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Имя пользователя не может быть пустым')
        return v.strip()

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError('Пароль должен содержать минимум 8 символов')
        if not any(c.isdigit() for c in v):
            raise ValueError('Пароль должен содержать хотя бы одну цифру')
        return v

class UserPublic(BaseModel):
    """Снимок пользователя, который можно отдавать клиентам."""
    id: str
    username: str
    email: Optional[str] = None
    avatar: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class UserRecord(UserPublic):
    """Полная запись в хранилище, включая хеш пароля."""
    hashed_password: Optional[str] = None

    def public(self) -> UserPublic:
        return UserPublic.model_validate(self.model_dump(exclude={"hashed_password"}))
