"""Database models."""
from .pin import Pin, PinSlot
from .message import Message
from .notification_device import NotificationDevice
from .notification_log import NotificationLog, NotificationDelivery
from .user import User

__all__ = [
    "Pin",
    "PinSlot",
    "Message",
    "NotificationDevice",
    "NotificationLog",
    "NotificationDelivery",
    "User",
]
