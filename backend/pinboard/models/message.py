"""Message model - replies addressed to a pin's creator."""
from sqlalchemy import Column, Integer, String, DateTime

from ..database import Base


class Message(Base):
    """A reply to a pin.

    pin_id is deliberately not a foreign key: replies outlive the pin they
    answer, and receiver_email is a snapshot of the creator at post time.
    """

    __tablename__ = "messages"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    pin_id = Column(Integer, nullable=False, index=True)
    sender_email = Column(String, nullable=False, index=True)
    receiver_email = Column(String, nullable=False, index=True)
    text = Column(String, nullable=False)
    author = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, index=True)
