"""Notification audit models - sent notifications and per-device attempts."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Boolean

from ..database import Base


class NotificationLog(Base):
    """Record of a logical notification that reached at least one device."""

    __tablename__ = "notification_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    body = Column(String, nullable=False)
    payload = Column(String, nullable=True)  # JSON of the custom keys
    created_at = Column(DateTime, default=datetime.utcnow)


class NotificationDelivery(Base):
    """Outcome of one push attempt to one device."""

    __tablename__ = "notification_deliveries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, nullable=False, index=True)
    device_token = Column(String, nullable=False)
    environment = Column(String, nullable=False)
    collapse_id = Column(String, nullable=True)
    success = Column(Boolean, nullable=False)
    detail = Column(String, nullable=True)  # APNs reason or transport error
    attempted_at = Column(DateTime, default=datetime.utcnow)
