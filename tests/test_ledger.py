# tests/test_ledger.py
import logging
import pytest
from stream_gateway.schemas.stream import AnonymousVisitor, AuthenticatedUser
from stream_gateway.services.ledger import QuotaExceededError, UsageLedger, estimate_tokens
from stream_gateway.services.store import InMemoryStore, StoreError

WINDOW = 30 * 24 * 60 * 60
VISITOR = AnonymousVisitor(visitor_id="v1")


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class BrokenStore:
    async def get(self, key):
        raise StoreError("backend down")

    async def put(self, key, value, *, ttl_seconds=None):
        raise StoreError("backend down")

    async def incr(self, key, amount, *, ttl_seconds):
        raise StoreError("backend down")


def test_estimate_tokens_rounds_up():
    assert estimate_tokens("") == 0
    assert estimate_tokens("hi") == 1
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2


@pytest.mark.asyncio
async def test_first_sight_creates_zero_record_with_window():
    store = InMemoryStore()
    ledger = UsageLedger(store, monthly_limit=500, window_seconds=WINDOW, key_prefix="u:")
    assert await ledger.get_consumed(VISITOR) == 0
    assert await store.get("u:visitor:v1") == "0"
    assert await store.ttl("u:visitor:v1") == pytest.approx(WINDOW, abs=5)


@pytest.mark.asyncio
async def test_get_consumed_is_idempotent(ledger):
    await ledger.record_consumption(VISITOR, 12)
    assert await ledger.get_consumed(VISITOR) == await ledger.get_consumed(VISITOR) == 12


@pytest.mark.asyncio
async def test_record_increases_by_exact_amount(ledger):
    before = await ledger.get_consumed(VISITOR)
    await ledger.record_consumption(VISITOR, 40)
    assert await ledger.get_consumed(VISITOR) == before + 40


@pytest.mark.asyncio
async def test_record_never_extends_window():
    clock = FakeClock()
    store = InMemoryStore(clock=clock)
    ledger = UsageLedger(store, monthly_limit=500, window_seconds=100)
    await ledger.get_consumed(VISITOR)
    clock.now = 90
    await ledger.record_consumption(VISITOR, 5)
    assert await store.ttl("visitor:v1") == pytest.approx(10)
    clock.now = 100
    # window elapsed: the record is gone and counting restarts
    assert await ledger.get_consumed(VISITOR) == 0


@pytest.mark.asyncio
async def test_record_after_expiry_opens_new_window():
    clock = FakeClock()
    store = InMemoryStore(clock=clock)
    ledger = UsageLedger(store, monthly_limit=500, window_seconds=100)
    await ledger.record_consumption(VISITOR, 7)
    clock.now = 150
    await ledger.record_consumption(VISITOR, 3)
    assert await ledger.get_consumed(VISITOR) == 3
    assert await store.ttl("visitor:v1") == pytest.approx(100)


@pytest.mark.asyncio
async def test_identities_are_tracked_separately(ledger):
    user = AuthenticatedUser(user_id="v1", credential="tok")
    await ledger.record_consumption(VISITOR, 30)
    await ledger.record_consumption(user, 4)
    assert await ledger.get_consumed(VISITOR) == 30
    assert await ledger.get_consumed(user) == 4


@pytest.mark.asyncio
async def test_budget_boundary(ledger):
    await ledger.record_consumption(VISITOR, 499)
    assert not await ledger.is_over_budget(VISITOR)
    await ledger.ensure_within_budget(VISITOR)
    await ledger.record_consumption(VISITOR, 1)
    assert await ledger.is_over_budget(VISITOR)
    with pytest.raises(QuotaExceededError) as exc:
        await ledger.ensure_within_budget(VISITOR)
    assert exc.value.consumed == 500
    assert exc.value.limit == 500


@pytest.mark.asyncio
async def test_negative_tokens_rejected(ledger):
    with pytest.raises(ValueError):
        await ledger.record_consumption(VISITOR, -1)


@pytest.mark.asyncio
async def test_store_failures_fail_open_and_are_logged(caplog):
    caplog.set_level(logging.WARNING)
    ledger = UsageLedger(BrokenStore(), monthly_limit=500, window_seconds=WINDOW)
    assert await ledger.get_consumed(VISITOR) == 0
    assert not await ledger.is_over_budget(VISITOR)
    await ledger.record_consumption(VISITOR, 10)  # must not raise
    log_text = "\n".join(rec.getMessage() for rec in caplog.records)
    assert "usage read failed" in log_text
    assert "dropped" in log_text


@pytest.mark.asyncio
async def test_corrupt_value_reads_as_zero():
    store = InMemoryStore()
    await store.put("visitor:v1", "not-a-number", ttl_seconds=60)
    ledger = UsageLedger(store, monthly_limit=500, window_seconds=60)
    assert await ledger.get_consumed(VISITOR) == 0


@pytest.mark.asyncio
async def test_record_near_window_end_never_loses_expiry():
    # The update lands just before the window closes; the record must still expire with it.
    readings = [0, 0, 99, 100]  # constructor, first sight, record, later read

    def clock():
        return readings.pop(0) if len(readings) > 1 else readings[0]

    store = InMemoryStore(clock=clock)
    ledger = UsageLedger(store, monthly_limit=10, window_seconds=100)
    assert await ledger.get_consumed(VISITOR) == 0
    await ledger.record_consumption(VISITOR, 10)
    # window elapsed: the identity is no longer locked out
    assert await ledger.get_consumed(VISITOR) == 0
    assert not await ledger.is_over_budget(VISITOR)
