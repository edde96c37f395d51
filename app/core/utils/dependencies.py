from fastapi import Depends, HTTPException, Request, status

from app.core.config import settings
from app.core.container import Services
from app.schemas.auth import Session
from app.schemas.user import UserPublic

def get_services(request: Request) -> Services:
    return request.app.state.services

def get_session_token(request: Request) -> str | None:
    return request.cookies.get(settings.SESSION_COOKIE_NAME)

async def get_current_session(
    token: str | None = Depends(get_session_token),
    services: Services = Depends(get_services),
) -> Session:
    """Сессия по cookie; 401, если cookie нет или сессия уже закрыта"""
    session = services.sessions.get(token)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return session

async def get_current_user(session: Session = Depends(get_current_session)) -> UserPublic:
    return session.user
