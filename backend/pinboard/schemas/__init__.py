"""Pydantic schemas for API request/response models."""
from .base import SuccessResponse
from .pin import (
    PinCreate,
    PinDelete,
    PinResponse,
)
from .message import (
    MessageCreate,
    MessageResponse,
    MessageCreated,
)
from .device import (
    DeviceTokenRegister,
    DeviceTokenUnregister,
    DeviceResponse,
    BroadcastRequest,
    BroadcastResponse,
)

__all__ = [
    "SuccessResponse",
    "PinCreate",
    "PinDelete",
    "PinResponse",
    "MessageCreate",
    "MessageResponse",
    "MessageCreated",
    "DeviceTokenRegister",
    "DeviceTokenUnregister",
    "DeviceResponse",
    "BroadcastRequest",
    "BroadcastResponse",
]
