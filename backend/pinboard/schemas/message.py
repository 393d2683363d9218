"""Reply message schemas for API."""
from typing import Optional
from pydantic import Field

from .base import ApiModel, TimestampedModel


class MessageCreate(ApiModel):
    """Schema for replying to a pin."""
    pin_id: int = Field(..., ge=1)
    message: str = ""
    author: Optional[str] = None


class MessageResponse(TimestampedModel):
    """Schema for a message in API responses."""
    id: int
    pin_id: int
    sender_email: str
    receiver_email: str
    message: str = Field(validation_alias="text")
    author: Optional[str] = None


class MessageCreated(ApiModel):
    """Response after posting a reply."""
    success: bool = True
    message: MessageResponse
