"""Reply message API endpoints."""
from typing import List

from fastapi import APIRouter, Depends

from ..dependencies import get_current_user, get_pinboard, get_writing_user
from ..schemas import MessageCreate, MessageCreated, MessageResponse
from ..services.auth_gateway import AuthenticatedUser
from ..services.container import Pinboard
from ..services.reply_thread import BOX_RECEIVED, BOX_SENT

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("", response_model=List[MessageResponse])
async def list_messages(
    box: str = BOX_RECEIVED,
    user: AuthenticatedUser = Depends(get_current_user),
    pinboard: Pinboard = Depends(get_pinboard),
):
    """List the caller's received (default) or sent replies, newest first."""
    box = BOX_SENT if box.strip().lower() == BOX_SENT else BOX_RECEIVED
    messages = await pinboard.reply_thread.list(user.email, box)
    return [MessageResponse.model_validate(message) for message in messages]


@router.post("", response_model=MessageCreated, status_code=201)
async def create_message(
    request: MessageCreate,
    user: AuthenticatedUser = Depends(get_writing_user),
    pinboard: Pinboard = Depends(get_pinboard),
):
    """Reply to a pin; its creator gets a push unless they replied to themselves."""
    message = await pinboard.reply_thread.post(
        pin_id=request.pin_id,
        sender_email=user.email,
        text=request.message,
        author=request.author,
    )
    return MessageCreated(message=MessageResponse.model_validate(message))
