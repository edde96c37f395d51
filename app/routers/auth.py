from fastapi import APIRouter, Depends, HTTPException, status, Request, Response
import logging

from app.core.config import settings
from app.core.container import Services
from app.core.errors import InvalidCredentials, StorageUnavailable, UserAlreadyExists, WriteFailed
from app.core.utils.dependencies import get_services, get_session_token
from app.core.utils.rate_limiter import limiter
from app.schemas.auth import UserLogin
from app.schemas.user import UserCreate, UserPublic

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register", response_model=UserPublic, status_code=status.HTTP_201_CREATED, summary="Register a new user")
@limiter.limit("5/minute")
async def register(request: Request, response: Response, user: UserCreate, services: Services = Depends(get_services)):
    """
    Registers a new user and opens a session for it.

    - **Rate Limit**: 5 requests per minute.
    - The password is hashed before being stored.
    - Sets the session cookie, so the client is logged in right away.

    Raises:
    - **HTTPException** (400): If the `email` is already taken.
    - **HTTPException** (503): If the store is unavailable.
    """
    try:
        new_user = await services.users.create_user(user)
    except UserAlreadyExists as e:
        logger.warning(f"Registration failed: {e.message}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except (StorageUnavailable, WriteFailed) as e:
        logger.error(f"Storage error during registration: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to register user"
        )

    session = services.sessions.create(new_user.public())
    response.set_cookie(settings.SESSION_COOKIE_NAME, session.token, httponly=True, samesite="lax")
    return session.user

@router.post("/login", response_model=UserPublic, summary="Authenticate a user")
@limiter.limit("10/minute")
async def login(request: Request, response: Response, credentials: UserLogin, services: Services = Depends(get_services)):
    """
    Verifies the password and opens a new session.

    - **Rate Limit**: 10 requests per minute.
    - Every login creates a separate session; older sessions stay valid.

    Raises:
    - **HTTPException** (401): If the credentials are invalid.
    - **HTTPException** (503): If the store is unavailable.
    """
    try:
        user = await services.users.authenticate(credentials.email, credentials.password)
    except InvalidCredentials as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)
    except StorageUnavailable as e:
        logger.error(f"Storage error during login: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to authenticate user"
        )

    session = services.sessions.create(user.public())
    response.set_cookie(settings.SESSION_COOKIE_NAME, session.token, httponly=True, samesite="lax")
    logger.info(f"User logged in: {user.username}")
    return session.user

@router.post("/logout", summary="Close the current session")
async def logout(
    response: Response,
    token: str | None = Depends(get_session_token),
    services: Services = Depends(get_services),
):
    """Destroys the session behind the cookie (if any) and clears the cookie."""
    services.sessions.destroy(token)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"success": True}
