"""Pin schemas for API."""
from typing import Optional
from pydantic import Field

from .base import ApiModel, TimestampedModel


class PinCreate(ApiModel):
    """Schema for claiming a slot. Content rules are enforced by the slot store."""
    emoji: str = ""
    text: str = ""
    author: Optional[str] = None
    grid_row: Optional[int] = None
    grid_col: Optional[int] = None


class PinDelete(ApiModel):
    """Schema for deleting one's own pin."""
    id: int = Field(..., ge=1)


class PinResponse(TimestampedModel):
    """Schema for pin in API responses."""
    id: int
    emoji: str
    text: str
    author: Optional[str] = None
    creator_email: str
    grid_row: int
    grid_col: int
