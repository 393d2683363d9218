"""Scheduler service - periodic pinboard maintenance.

Expiry is computed on every read, so nothing here affects what clients
see. The reaper only keeps the pins table from growing without bound; it
is idempotent and safe to run more often than needed.
"""
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .lifecycle import utcnow
from .slot_store import SlotStore

logger = logging.getLogger(__name__)


class MaintenanceScheduler:
    """Runs the expired-pin reaper on a fixed interval."""

    def __init__(self, slot_store: SlotStore, interval_minutes: int = 60):
        self._slot_store = slot_store
        self._interval_minutes = interval_minutes
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self):
        """Start the scheduler."""
        if self._running:
            return

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self.reap_expired_pins,
            trigger=IntervalTrigger(minutes=self._interval_minutes),
            id="reap_expired_pins",
            replace_existing=True,
            max_instances=1,
        )

        self.scheduler.start()
        self._running = True
        logger.info(f"Scheduler started (reaper every {self._interval_minutes} min)")

    def stop(self):
        """Stop the scheduler."""
        if self.scheduler and self._running:
            self.scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    async def reap_expired_pins(self) -> int:
        """Delete pins older than the TTL."""
        try:
            return await self._slot_store.reap_expired(utcnow())
        except Exception as e:
            logger.error(f"Error reaping expired pins: {e}")
            return 0
