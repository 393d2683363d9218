"""Admin notification endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends

from ..dependencies import get_pinboard, require_admin
from ..schemas import BroadcastRequest, BroadcastResponse, DeviceResponse
from ..services.container import Pinboard

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.post("/notifications", response_model=BroadcastResponse)
async def send_broadcast(
    request: BroadcastRequest,
    pinboard: Pinboard = Depends(get_pinboard),
):
    """Push a custom title/body to one user or to everyone with an active device."""
    result = await pinboard.dispatcher.broadcast(
        request.title,
        request.body,
        target_email=request.target_email,
        send_all=request.send_all,
        extra=request.extra,
    )
    return BroadcastResponse(targets=result.targets, delivered=result.delivered)


@router.get("/devices", response_model=List[DeviceResponse])
async def list_devices(
    email: Optional[str] = None,
    pinboard: Pinboard = Depends(get_pinboard),
):
    """Active device registrations (optionally for one email)."""
    devices = await pinboard.dispatcher.list_active_devices(email)
    return [DeviceResponse.model_validate(device) for device in devices]
