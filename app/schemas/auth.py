from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, timezone

from app.schemas.user import UserPublic

class UserLogin(BaseModel):
    email: str
    password: str

class Session(BaseModel):
    token: str
    user: UserPublic
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(frozen=True)
