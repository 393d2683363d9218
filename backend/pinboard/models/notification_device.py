"""NotificationDevice model - stores iOS device tokens for push notifications."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Boolean

from ..database import Base


class NotificationDevice(Base):
    """Registered device for push notifications.

    Rows are never deleted; unregistering only clears ``is_active``.
    """

    __tablename__ = "notification_devices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, nullable=False, index=True)
    device_token = Column(String, unique=True, nullable=False, index=True)
    platform = Column(String, default="ios")  # ios only for now
    environment = Column(String, default="production")  # sandbox, production
    app_version = Column(String, nullable=True)
    os_version = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    registered_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_used_at = Column(DateTime, default=datetime.utcnow)
