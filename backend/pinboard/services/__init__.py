"""Services for pins, replies, notifications and maintenance."""
from .lifecycle import PinLifecycle
from .slot_store import SlotStore, GridBounds
from .reply_thread import ReplyThread
from .dispatcher import NotificationDispatcher
from .push_sender import PushSenderService, ApnsCredentials, PushNotification
from .scheduler import MaintenanceScheduler
from .container import Pinboard, build_pinboard

__all__ = [
    "PinLifecycle",
    "SlotStore",
    "GridBounds",
    "ReplyThread",
    "NotificationDispatcher",
    "PushSenderService",
    "ApnsCredentials",
    "PushNotification",
    "MaintenanceScheduler",
    "Pinboard",
    "build_pinboard",
]
