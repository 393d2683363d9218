"""Slot store - pin creation, listing and deletion with slot exclusivity.

Claims go through a compare-and-set on the ``pin_slots`` row for the cell:

    UPDATE pin_slots SET claimed_at = :now
    WHERE cell = :cell AND (pin_id IS NULL OR claimed_at <= :cutoff)

The update is the first statement of the claim transaction. On SQLite it
takes the database write lock, so competing claims queue behind it; on
PostgreSQL the row lock makes a waiting claimant re-evaluate the predicate
after the winner commits. Either way exactly one claim sees rowcount == 1.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..errors import Conflict, Forbidden, InvalidInput, NotFound, SlotOccupied
from ..models import Pin, PinSlot
from ..utils.db_utils import retry_on_lock
from ..utils.text import normalize_email, normalize_optional
from .lifecycle import PinLifecycle

logger = logging.getLogger(__name__)

MAX_EMOJI_LENGTH = 10


def creator_lock_statement(dialect_name: str, creator_email: str):
    """Transaction-scoped lock serialising one creator's claims.

    SQLite needs none: the slot update already holds the database write
    lock. On PostgreSQL two claims by the same creator for different slots
    lock different rows, so they are ordered by an advisory lock instead.
    """
    if dialect_name != "postgresql":
        return None
    return select(func.pg_advisory_xact_lock(func.hashtext(creator_email)))


@dataclass(frozen=True)
class GridBounds:
    """Fixed grid dimensions shared with the client."""
    rows: int = 8
    cols: int = 5

    def contains(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols


class SlotStore:
    """Source of truth for pins."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        lifecycle: PinLifecycle,
        grid: GridBounds,
        enforce_single_live_pin: bool = True,
    ):
        self._session_factory = session_factory
        self.lifecycle = lifecycle
        self.grid = grid
        self.enforce_single_live_pin = enforce_single_live_pin

    async def list_active(self, now: datetime) -> List[Pin]:
        """All live pins inside the grid, newest first."""
        cutoff = self.lifecycle.cutoff(now)
        async with self._session_factory() as session:
            result = await session.execute(
                select(Pin)
                .where(
                    and_(
                        Pin.created_at > cutoff,
                        Pin.grid_row >= 0,
                        Pin.grid_row < self.grid.rows,
                        Pin.grid_col >= 0,
                        Pin.grid_col < self.grid.cols,
                    )
                )
                .order_by(Pin.created_at.desc(), Pin.id.desc())
            )
            return list(result.scalars().all())

    async def get(self, pin_id: int) -> Optional[Pin]:
        async with self._session_factory() as session:
            return await session.get(Pin, pin_id)

    async def claim(
        self,
        row: int,
        col: int,
        emoji: str,
        text: str,
        creator_email: str,
        now: datetime,
        author: Optional[str] = None,
    ) -> Pin:
        """Create a pin in an empty (or expired) slot.

        Raises:
            InvalidInput: bad emoji/text/coordinates or missing creator
            SlotOccupied: a live pin already holds the slot
            Conflict: the creator already has a live pin (when enforced)
        """
        emoji = (emoji or "").strip()
        text = (text or "").strip()
        creator_email = normalize_email(creator_email)
        author = normalize_optional(author)

        if not emoji or not text:
            raise InvalidInput("Emoji, text, row, and column are required.")
        if len(emoji) > MAX_EMOJI_LENGTH:
            raise InvalidInput(f"Emoji must be at most {MAX_EMOJI_LENGTH} characters.")
        if not self.grid.contains(row, col):
            raise InvalidInput("Grid location is out of range.")
        if not creator_email:
            raise InvalidInput("Creator email is required.")

        async def attempt() -> Pin:
            return await self._claim_once(row, col, emoji, text, author, creator_email, now)

        pin = await retry_on_lock(attempt)
        logger.info(f"Pin {pin.id} claimed slot ({row},{col}) for {creator_email}")
        return pin

    async def _claim_once(
        self,
        row: int,
        col: int,
        emoji: str,
        text: str,
        author: Optional[str],
        creator_email: str,
        now: datetime,
    ) -> Pin:
        cutoff = self.lifecycle.cutoff(now)
        async with self._session_factory() as session:
            async with session.begin():
                # Must stay the first statement: it takes the write lock
                taken = await session.execute(
                    update(PinSlot)
                    .where(
                        and_(
                            PinSlot.grid_row == row,
                            PinSlot.grid_col == col,
                            or_(
                                PinSlot.pin_id.is_(None),
                                PinSlot.claimed_at.is_(None),
                                PinSlot.claimed_at <= cutoff,
                            ),
                        )
                    )
                    .values(pin_id=None, claimed_at=now)
                    .execution_options(synchronize_session=False)
                )
                if taken.rowcount != 1:
                    raise SlotOccupied()

                if self.enforce_single_live_pin:
                    lock = creator_lock_statement(session.get_bind().dialect.name, creator_email)
                    if lock is not None:
                        await session.execute(lock)
                    existing = await session.execute(
                        select(Pin.id)
                        .where(
                            and_(
                                Pin.creator_email == creator_email,
                                Pin.created_at > cutoff,
                            )
                        )
                        .limit(1)
                    )
                    if existing.scalar_one_or_none() is not None:
                        raise Conflict("You already have a live pin on the board.")

                pin = Pin(
                    emoji=emoji,
                    text=text,
                    author=author,
                    creator_email=creator_email,
                    grid_row=row,
                    grid_col=col,
                    created_at=now,
                )
                session.add(pin)
                await session.flush()

                await session.execute(
                    update(PinSlot)
                    .where(and_(PinSlot.grid_row == row, PinSlot.grid_col == col))
                    .values(pin_id=pin.id)
                    .execution_options(synchronize_session=False)
                )
            return pin

    async def delete_own(self, pin_id: int, requester_email: str) -> None:
        """Permanently delete a pin owned by the requester and free its slot.

        Raises:
            NotFound: no pin with that id
            Forbidden: requester is not the creator
        """
        requester = normalize_email(requester_email)

        async def attempt() -> None:
            async with self._session_factory() as session:
                async with session.begin():
                    pin = await session.get(Pin, pin_id)
                    if pin is None:
                        raise NotFound("Pin not found.")
                    if normalize_email(pin.creator_email) != requester:
                        raise Forbidden("You can only delete your own pin.")

                    await session.execute(
                        update(PinSlot)
                        .where(PinSlot.pin_id == pin_id)
                        .values(pin_id=None, claimed_at=None)
                        .execution_options(synchronize_session=False)
                    )
                    await session.delete(pin)

        await retry_on_lock(attempt)
        logger.info(f"Pin {pin_id} deleted by {requester}")

    async def reap_expired(self, now: datetime) -> int:
        """Physically delete expired pins and release their slots.

        Maintenance only: liveness never depends on this having run.
        Replies are untouched.
        """
        cutoff = self.lifecycle.cutoff(now)

        async def attempt() -> int:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(
                        update(PinSlot)
                        .where(
                            and_(
                                PinSlot.claimed_at.is_not(None),
                                PinSlot.claimed_at <= cutoff,
                            )
                        )
                        .values(pin_id=None, claimed_at=None)
                        .execution_options(synchronize_session=False)
                    )
                    result = await session.execute(
                        delete(Pin)
                        .where(Pin.created_at <= cutoff)
                        .execution_options(synchronize_session=False)
                    )
                    return result.rowcount or 0

        removed = await retry_on_lock(attempt)
        if removed:
            logger.info(f"Reaped {removed} expired pins")
        return removed
