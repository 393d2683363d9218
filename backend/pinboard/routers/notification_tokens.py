"""Device registration API endpoints for push notifications."""
from fastapi import APIRouter, Depends

from ..dependencies import get_pinboard, get_writing_user
from ..schemas import DeviceTokenRegister, DeviceTokenUnregister, SuccessResponse
from ..services.auth_gateway import AuthenticatedUser
from ..services.container import Pinboard

router = APIRouter(prefix="/notification_tokens", tags=["notifications"])


@router.post("", response_model=SuccessResponse, status_code=201)
async def register_device(
    request: DeviceTokenRegister,
    user: AuthenticatedUser = Depends(get_writing_user),
    pinboard: Pinboard = Depends(get_pinboard),
):
    """Register a device for push notifications.

    The iOS app calls this on every launch; existing tokens are refreshed
    and reactivated.
    """
    await pinboard.dispatcher.register_device(
        user.email,
        request.device_token,
        platform=request.platform,
        environment=request.environment,
        app_version=request.app_version,
        os_version=request.os_version,
    )
    return SuccessResponse()


@router.delete("", response_model=SuccessResponse)
async def unregister_device(
    request: DeviceTokenUnregister,
    user: AuthenticatedUser = Depends(get_writing_user),
    pinboard: Pinboard = Depends(get_pinboard),
):
    """Stop pushes to a device (on logout).

    This doesn't delete the record but marks it as inactive.
    """
    await pinboard.dispatcher.unregister_device(user.email, request.device_token)
    return SuccessResponse()
