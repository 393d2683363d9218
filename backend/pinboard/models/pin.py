"""Pin models - ephemeral posts on the shared grid and the slots they occupy."""
from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint

from ..database import Base


class Pin(Base):
    """A short message pinned to one grid cell.

    Pins are never edited. They stop being visible once older than the TTL
    and are physically removed by the reaper or by their creator.
    """

    __tablename__ = "pins"
    # Never hand a deleted pin's id to a new pin; replies reference it by id
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    emoji = Column(String(32), nullable=False)
    text = Column(String, nullable=False)
    author = Column(String, nullable=True)  # Optional display name
    creator_email = Column(String, nullable=False, index=True)
    grid_row = Column(Integer, nullable=False)
    grid_col = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, index=True)


class PinSlot(Base):
    """One row per grid cell; the compare-and-set target for claims."""

    __tablename__ = "pin_slots"
    __table_args__ = (UniqueConstraint("grid_row", "grid_col", name="uq_pin_slots_cell"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    grid_row = Column(Integer, nullable=False)
    grid_col = Column(Integer, nullable=False)
    pin_id = Column(Integer, nullable=True)  # NULL = free
    claimed_at = Column(DateTime, nullable=True)  # equals the occupant's created_at
