"""Pin expiry policy.

A pin is live while ``now - created_at < ttl``. Nothing here touches the
database: the slot store uses ``cutoff`` in its queries and client-side
caches can use ``prune`` with the ``createdAt`` the API returns, so both
sides agree on when a pin disappears.
"""
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Protocol, TypeVar


class HasCreatedAt(Protocol):
    created_at: datetime


P = TypeVar("P", bound=HasCreatedAt)


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class PinLifecycle:
    """Translates (created_at, now, ttl) into liveness."""

    def __init__(self, ttl: timedelta):
        if ttl <= timedelta(0):
            raise ValueError("Pin TTL must be positive")
        self.ttl = ttl

    @classmethod
    def from_hours(cls, hours: float) -> "PinLifecycle":
        return cls(timedelta(hours=hours))

    def expires_at(self, pin: HasCreatedAt) -> datetime:
        return pin.created_at + self.ttl

    def cutoff(self, now: datetime) -> datetime:
        """Pins created at or before this instant are expired at ``now``."""
        return now - self.ttl

    def is_expired(self, pin: HasCreatedAt, now: datetime) -> bool:
        return now >= self.expires_at(pin)

    def is_live(self, pin: HasCreatedAt, now: datetime) -> bool:
        return not self.is_expired(pin, now)

    def remaining_fraction(self, pin: HasCreatedAt, now: datetime) -> float:
        """Share of the TTL still left, in [0, 1]. Used for progress rings."""
        elapsed = (now - pin.created_at) / self.ttl
        return min(1.0, max(0.0, 1.0 - elapsed))

    def prune(self, pins: Iterable[P], now: datetime) -> List[P]:
        """Drop expired pins. Safe to run repeatedly."""
        return [pin for pin in pins if not self.is_expired(pin, now)]
