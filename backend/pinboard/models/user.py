"""User model - accounts owned by the login service, read here for auth."""
from sqlalchemy import Column, Integer, String

from ..database import Base


class User(Base):
    """App user. Only login_token lookups happen in this service."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, nullable=False, unique=True)
    login_token = Column(String, nullable=True, index=True)
    status = Column(String, default="regular")  # regular, muted, banned
