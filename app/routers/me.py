from fastapi import APIRouter, Depends, Request

from app.core.container import Services
from app.core.utils.dependencies import get_current_user, get_services
from app.core.utils.rate_limiter import limiter
from app.schemas.user import UserPublic

router = APIRouter(prefix="/me", tags=["me"])

@router.get("", response_model=UserPublic, summary="Get Current User Profile")
@limiter.limit("10/minute")
async def get_current_user_info(
    request: Request,
    current_user: UserPublic = Depends(get_current_user),
):
    """
    Retrieves the profile snapshot stored in the current session.

    - **Rate Limit**: 10 requests per minute.
    - Requires the session cookie set by `/auth/login` or `/auth/register`.

    Raises:
    - **HTTPException** (401): If there is no valid session.
    """
    return current_user

@router.get("/presence", summary="Online status of the current user")
async def get_presence(
    current_user: UserPublic = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Returns whether the current user has at least one joined socket, and
    which other users are online.
    """
    registry = services.registry
    return {
        "userId": current_user.id,
        "online": registry.is_online(current_user.id),
        "onlineUsers": [user_id for user_id in registry.online_users() if user_id != current_user.id],
    }
