"""Tests for slot claiming, listing, deletion and reaping."""
import asyncio
from datetime import datetime, timedelta

import pytest
from sqlalchemy.dialects import postgresql

from pinboard.errors import Conflict, Forbidden, InvalidInput, NotFound, SlotOccupied
from pinboard.models import Pin
from pinboard.services.slot_store import creator_lock_statement

T0 = datetime(2026, 10, 19, 12, 0, 0)
TTL = timedelta(hours=8)


async def test_claimed_pin_is_listed_until_ttl(slot_store):
    pin = await slot_store.claim(2, 3, "📌", "hi", "a@x.com", now=T0)

    assert pin.id is not None
    assert pin.created_at == T0
    assert (pin.grid_row, pin.grid_col) == (2, 3)

    listed = await slot_store.list_active(T0)
    assert [p.id for p in listed] == [pin.id]

    assert [p.id for p in await slot_store.list_active(T0 + TTL - timedelta(seconds=1))] == [pin.id]
    assert await slot_store.list_active(T0 + TTL) == []


async def test_occupied_slot_rejects_until_expiry(slot_store):
    await slot_store.claim(0, 0, "🎉", "party", "a@x.com", now=T0)

    with pytest.raises(SlotOccupied):
        await slot_store.claim(0, 0, "🎈", "party2", "b@x.com", now=T0 + timedelta(hours=1))

    pin = await slot_store.claim(0, 0, "🎈", "party2", "b@x.com", now=T0 + TTL)
    assert pin.creator_email == "b@x.com"
    assert [p.text for p in await slot_store.list_active(T0 + TTL)] == ["party2"]


async def test_concurrent_claims_on_one_slot_have_single_winner(slot_store):
    claimants = [f"user{i}@x.com" for i in range(10)]

    results = await asyncio.gather(
        *(slot_store.claim(4, 4, "🔥", "mine", email, now=T0) for email in claimants),
        return_exceptions=True,
    )

    winners = [r for r in results if isinstance(r, Pin)]
    losers = [r for r in results if not isinstance(r, Pin)]
    assert len(winners) == 1
    assert len(losers) == len(claimants) - 1
    assert all(isinstance(r, SlotOccupied) for r in losers)
    assert len(await slot_store.list_active(T0)) == 1


async def test_concurrent_claims_on_different_slots_all_succeed(slot_store):
    results = await asyncio.gather(
        *(slot_store.claim(row, 1, "✨", "hello", f"user{row}@x.com", now=T0) for row in range(5))
    )
    assert len({pin.id for pin in results}) == 5


@pytest.mark.parametrize(
    "row, col, emoji, text, message",
    [
        (0, 0, "", "text", "required"),
        (0, 0, "  ", "text", "required"),
        (0, 0, "📌", "   ", "required"),
        (0, 0, "abcdefghijk", "text", "at most 10"),
        (8, 0, "📌", "text", "out of range"),
        (0, 5, "📌", "text", "out of range"),
        (-1, 0, "📌", "text", "out of range"),
    ],
)
async def test_claim_validation(slot_store, row, col, emoji, text, message):
    with pytest.raises(InvalidInput) as excinfo:
        await slot_store.claim(row, col, emoji, text, "a@x.com", now=T0)
    assert message in excinfo.value.message


async def test_claim_normalizes_fields(slot_store):
    pin = await slot_store.claim(1, 1, " 📌 ", "  hello  ", "  Alice@X.com ", now=T0, author="   ")
    assert pin.emoji == "📌"
    assert pin.text == "hello"
    assert pin.creator_email == "alice@x.com"
    assert pin.author is None


async def test_creator_limited_to_one_live_pin(slot_store):
    await slot_store.claim(0, 0, "📌", "first", "a@x.com", now=T0)

    with pytest.raises(Conflict) as excinfo:
        await slot_store.claim(1, 1, "📌", "second", "a@x.com", now=T0 + timedelta(minutes=5))
    assert not isinstance(excinfo.value, SlotOccupied)

    # The rejected claim must not leave its slot reserved
    other = await slot_store.claim(1, 1, "📌", "someone else", "b@x.com", now=T0 + timedelta(minutes=6))
    assert other.grid_row == 1

    again = await slot_store.claim(2, 2, "📌", "later", "a@x.com", now=T0 + TTL)
    assert again.text == "later"


async def test_single_pin_policy_can_be_disabled(slot_store):
    slot_store.enforce_single_live_pin = False
    await slot_store.claim(0, 0, "📌", "first", "a@x.com", now=T0)
    second = await slot_store.claim(0, 1, "📌", "second", "a@x.com", now=T0)
    assert second.grid_col == 1


async def test_delete_own_rules(slot_store):
    pin = await slot_store.claim(3, 3, "📌", "mine", "a@x.com", now=T0)

    with pytest.raises(Forbidden):
        await slot_store.delete_own(pin.id, "b@x.com")
    assert await slot_store.get(pin.id) is not None

    await slot_store.delete_own(pin.id, "A@X.COM")
    assert await slot_store.get(pin.id) is None

    with pytest.raises(NotFound):
        await slot_store.delete_own(pin.id, "a@x.com")


async def test_delete_frees_slot_immediately(slot_store):
    pin = await slot_store.claim(3, 3, "📌", "mine", "a@x.com", now=T0)
    await slot_store.delete_own(pin.id, "a@x.com")

    replacement = await slot_store.claim(3, 3, "🎯", "next", "b@x.com", now=T0 + timedelta(minutes=1))
    assert replacement.id != pin.id


async def test_deleting_expired_occupant_does_not_free_new_claim(slot_store):
    old = await slot_store.claim(0, 0, "📌", "old", "a@x.com", now=T0)
    new = await slot_store.claim(0, 0, "📌", "new", "b@x.com", now=T0 + TTL)

    await slot_store.delete_own(old.id, "a@x.com")

    with pytest.raises(SlotOccupied):
        await slot_store.claim(0, 0, "📌", "third", "c@x.com", now=T0 + TTL + timedelta(minutes=1))
    assert [p.id for p in await slot_store.list_active(T0 + TTL)] == [new.id]


async def test_list_active_is_newest_first_and_in_bounds(pinboard, slot_store):
    first = await slot_store.claim(0, 0, "1️⃣", "one", "a@x.com", now=T0)
    second = await slot_store.claim(0, 1, "2️⃣", "two", "b@x.com", now=T0 + timedelta(minutes=1))

    async with pinboard.session_factory() as session:
        session.add(Pin(
            emoji="👻", text="legacy", creator_email="c@x.com",
            grid_row=12, grid_col=0, created_at=T0,
        ))
        await session.commit()

    listed = await slot_store.list_active(T0 + timedelta(minutes=2))
    assert [p.id for p in listed] == [second.id, first.id]


async def test_reap_removes_only_expired_pins(slot_store):
    old = await slot_store.claim(0, 0, "📌", "old", "a@x.com", now=T0)
    fresh = await slot_store.claim(0, 1, "📌", "fresh", "b@x.com", now=T0 + timedelta(hours=4))

    removed = await slot_store.reap_expired(T0 + TTL)

    assert removed == 1
    assert await slot_store.get(old.id) is None
    assert await slot_store.get(fresh.id) is not None
    assert await slot_store.reap_expired(T0 + TTL) == 0

    # Reaped slot is claimable, live one is not
    await slot_store.claim(0, 0, "📌", "again", "c@x.com", now=T0 + TTL)
    with pytest.raises(SlotOccupied):
        await slot_store.claim(0, 1, "📌", "nope", "d@x.com", now=T0 + TTL)


def test_creator_lock_only_on_postgresql():
    assert creator_lock_statement("sqlite", "a@x.com") is None

    lock = creator_lock_statement("postgresql", "a@x.com")
    sql = str(lock.compile(dialect=postgresql.dialect(), compile_kwargs={"literal_binds": True}))
    assert "pg_advisory_xact_lock(hashtext('a@x.com'))" in sql
