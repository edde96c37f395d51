from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
import logging

from app.core.container import Services
from app.core.errors import (
    EmptyMessage,
    InvalidParticipants,
    PartialIndexWrite,
    StorageUnavailable,
    WriteFailed,
)
from app.core.utils.dependencies import get_current_user, get_services
from app.core.utils.rate_limiter import limiter
from app.schemas.chat import ChatHistoryRead, ChatListRead, MessageCreate, MessageRead
from app.schemas.user import UserPublic

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chats"])

@router.get("/chats", response_model=ChatListRead, summary="List chats of the current user")
async def list_chats(
    current_user: UserPublic = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Returns the chat list of the current user together with everybody else
    who can be messaged. Last message and message count are computed from
    the message log on every call.
    """
    try:
        chats = await services.history.list_chats(current_user.id)
        other_users = await services.users.list_users(exclude=current_user.id)
    except StorageUnavailable as e:
        logger.error(f"Failed to load chats for {current_user.id}: {e.message}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Failed to load chats")
    return ChatListRead(current_user=current_user, chats=chats, other_users=other_users)

@router.get("/messages", response_model=ChatHistoryRead, summary="Load the conversation with a user")
async def get_messages(
    user_id: str = Query(..., alias="userId"),
    current_user: UserPublic = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Returns the messages exchanged with `userId`, oldest first.
    An empty list means the two users have not talked yet.
    """
    try:
        messages = await services.history.load_history(current_user.id, user_id)
    except StorageUnavailable as e:
        logger.error(f"Failed to load messages for {current_user.id}: {e.message}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Failed to load messages")
    return ChatHistoryRead(user_id=user_id, messages=messages)

@router.post("/messages", response_model=MessageRead, summary="Send a message")
@limiter.limit("60/minute")
async def send_message(
    request: Request,
    data: MessageCreate,
    current_user: UserPublic = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Request/response variant of `send-message`. Live connections of both
    participants still receive `message-received` and `chat-updated`.

    Raises:
    - **HTTPException** (400): Invalid receiver or empty text.
    - **HTTPException** (500): The chat was indexed for one participant only.
    - **HTTPException** (503): The store is unavailable or rejected the write.
    """
    try:
        result = await services.router.send_message(
            current_user.id, data.receiver_id, data.text, chat_id=data.chat_id
        )
    except (InvalidParticipants, EmptyMessage) as e:
        logger.warning(f"Send rejected for {current_user.id}: {e.message}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.to_payload())
    except PartialIndexWrite as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.to_payload())
    except (StorageUnavailable, WriteFailed) as e:
        logger.error(f"Send failed for {current_user.id}: {e.message}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.to_payload())

    return MessageRead(message=result.message, chat_id=result.chat.chat_id, is_new_chat=result.is_new_chat)
