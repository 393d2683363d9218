"""Notification token and admin broadcast schemas for API."""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import Field, field_serializer

from .base import ApiModel, format_utc


class DeviceTokenRegister(ApiModel):
    """Request to register a device for push notifications."""
    device_token: str = Field(..., min_length=1)
    platform: Optional[str] = None
    environment: Optional[str] = None  # sandbox, production
    app_version: Optional[str] = None
    os_version: Optional[str] = None


class DeviceTokenUnregister(ApiModel):
    """Request to stop pushes to a device."""
    device_token: str = Field(..., min_length=1)


class DeviceResponse(ApiModel):
    """Active registration, for the admin view."""
    email: str
    device_token: str
    platform: str
    environment: str
    app_version: Optional[str] = None
    os_version: Optional[str] = None
    updated_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None

    @field_serializer("updated_at", "last_used_at")
    def serialize_timestamps(self, value: Optional[datetime]) -> Optional[str]:
        return format_utc(value)


class BroadcastRequest(ApiModel):
    """Admin push to one user or everyone with an active device."""
    title: str = ""
    body: str = ""
    target_email: Optional[str] = None
    send_all: bool = False
    extra: Optional[Dict[str, Any]] = None


class BroadcastResponse(ApiModel):
    targets: List[str]
    delivered: int
