"""Tests for the maintenance scheduler."""
from datetime import timedelta

from pinboard.services.lifecycle import utcnow
from pinboard.services.scheduler import MaintenanceScheduler


async def test_reaper_job_deletes_expired_pins(slot_store):
    expired = await slot_store.claim(0, 0, "📌", "old", "a@x.com", now=utcnow() - timedelta(hours=9))
    live = await slot_store.claim(0, 1, "📌", "new", "b@x.com", now=utcnow())

    scheduler = MaintenanceScheduler(slot_store, interval_minutes=60)
    assert await scheduler.reap_expired_pins() == 1

    assert await slot_store.get(expired.id) is None
    assert await slot_store.get(live.id) is not None


async def test_start_and_stop_are_idempotent(slot_store):
    scheduler = MaintenanceScheduler(slot_store, interval_minutes=5)

    scheduler.start()
    scheduler.start()
    assert scheduler.running
    assert scheduler.scheduler.get_job("reap_expired_pins") is not None

    scheduler.stop()
    scheduler.stop()
    assert not scheduler.running
