"""Pinboard API endpoints."""
import logging
from typing import List

from fastapi import APIRouter, Depends

from ..dependencies import get_pinboard, get_writing_user
from ..errors import InvalidInput
from ..schemas import PinCreate, PinDelete, PinResponse, SuccessResponse
from ..services.auth_gateway import AuthenticatedUser
from ..services.container import Pinboard
from ..services.lifecycle import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pins", tags=["pins"])


@router.get("", response_model=List[PinResponse])
async def list_pins(pinboard: Pinboard = Depends(get_pinboard)):
    """List live pins. No authentication: the board is public."""
    pins = await pinboard.slot_store.list_active(utcnow())
    return [PinResponse.model_validate(pin) for pin in pins]


@router.post("", response_model=PinResponse, status_code=201)
async def create_pin(
    request: PinCreate,
    user: AuthenticatedUser = Depends(get_writing_user),
    pinboard: Pinboard = Depends(get_pinboard),
):
    """Claim an empty slot for a new pin.

    Returns 409 if a live pin already holds the slot.
    """
    if request.grid_row is None or request.grid_col is None:
        raise InvalidInput("Emoji, text, row, and column are required.")

    pin = await pinboard.slot_store.claim(
        row=request.grid_row,
        col=request.grid_col,
        emoji=request.emoji,
        text=request.text,
        author=request.author,
        creator_email=user.email,
        now=utcnow(),
    )
    return PinResponse.model_validate(pin)


@router.delete("", response_model=SuccessResponse)
async def delete_pin(
    request: PinDelete,
    user: AuthenticatedUser = Depends(get_writing_user),
    pinboard: Pinboard = Depends(get_pinboard),
):
    """Delete one of the caller's own pins."""
    await pinboard.slot_store.delete_own(request.id, user.email)
    return SuccessResponse()
