"""
Token Issuer tests

  1. Sequential numbering per (canteen, queue type, day)
  2. Online order fields
  3. Concurrent issuance never duplicates a number
  4. Lost claims are retried against a fresh read
  5. A failed write gives its number back
"""
import asyncio

import pytest

from smartqueue.core.optimistic_lock import StaleDataError
from smartqueue.engine import QueueEngine
from smartqueue.engine.issuer import format_token_number
from smartqueue.schemas.queue import OrderStatus, PaymentStatus, QueueType
from smartqueue.store.base import EntityType, StoreWriteError
from smartqueue.store.memory import InMemoryRecordStore

from tests.conftest import TZ, local


def test_format_token_number_pads_to_three_digits():
    assert format_token_number(1) == "A-001"
    assert format_token_number(42) == "A-042"
    assert format_token_number(1000) == "A-1000"


@pytest.mark.asyncio
async def test_campus_tokens_are_numbered_sequentially(engine, clock):
    numbers = []
    for _ in range(3):
        token = await engine.issue_campus_token("X", "C-1", "samosa")
        numbers.append(token.token_number)
        clock.advance(minutes=1)

    assert numbers == ["A-001", "A-002", "A-003"]


@pytest.mark.asyncio
async def test_campus_token_defaults(engine, clock):
    token = await engine.issue_campus_token("X", "COUPON-9", "vadapav")

    assert token.status == OrderStatus.WAITING
    assert token.queue_type == QueueType.CAMPUS
    assert token.estimated_wait_time_minutes == 5
    assert token.coupon_code == "COUPON-9"
    assert token.timestamp == clock.now
    assert token.completed_at is None
    assert token.payment_id is None


@pytest.mark.asyncio
async def test_issued_token_is_persisted(engine):
    token = await engine.issue_campus_token("X", "", "coffee")
    assert await engine.queues.get_token(token.id) == token


@pytest.mark.asyncio
async def test_online_order_fields(engine):
    token = await engine.issue_online_order("X", "masaladosa", "a@uni.edu", "9999999999", "pay_abc")

    assert token.queue_type == QueueType.ONLINE
    assert token.token_number == "A-001"
    assert token.coupon_code == ""
    assert token.estimated_wait_time_minutes == 8
    assert token.payment_id == "pay_abc"
    assert token.payment_status == PaymentStatus.COMPLETED
    assert token.user_email == "a@uni.edu"
    assert token.user_phone == "9999999999"


@pytest.mark.asyncio
async def test_scopes_are_independent(engine):
    a1 = await engine.issue_campus_token("X", "", "samosa")
    o1 = await engine.issue_online_order("X", "samosa", "e", "p", "pay_1")
    b1 = await engine.issue_campus_token("Y", "", "samosa")
    a2 = await engine.issue_campus_token("X", "", "samosa")

    assert [a1.token_number, o1.token_number, b1.token_number, a2.token_number] == [
        "A-001", "A-001", "A-001", "A-002",
    ]


@pytest.mark.asyncio
async def test_numbering_restarts_each_local_day(engine, clock):
    clock.set(local(23, 50, day=18))
    await engine.issue_campus_token("X", "", "samosa")
    await engine.issue_campus_token("X", "", "samosa")

    clock.set(local(0, 5, day=19))
    token = await engine.issue_campus_token("X", "", "samosa")

    assert token.token_number == "A-001"


@pytest.mark.asyncio
async def test_concurrent_issuance_yields_unique_numbers(engine):
    tokens = await asyncio.gather(*[engine.issue_campus_token("X", "", "samosa") for _ in range(10)])

    numbers = sorted(t.token_number for t in tokens)
    assert numbers == [format_token_number(i) for i in range(1, 11)]


class RivalWriterStore(InMemoryRecordStore):
    """Simulates another process: the first claim is lost to a token it writes meanwhile."""

    def __init__(self, rival):
        super().__init__()
        self._rival = rival
        self.claim_attempts = 0

    async def claim(self, key: str) -> bool:
        self.claim_attempts += 1
        if self.claim_attempts == 1:
            await super().claim(key)
            await self._rival(self)
            return False
        return await super().claim(key)


@pytest.mark.asyncio
async def test_lost_claim_is_retried_with_fresh_count(settings, clock):
    async def rival(store):
        other = QueueEngine(InMemoryRecordStore(), settings=settings, clock=clock, tz=TZ)
        token = await other.issue_campus_token("X", "", "coffee")
        await store._write(EntityType.TOKEN, token.id, token.model_dump(mode="json"))

    store = RivalWriterStore(rival)
    engine = QueueEngine(store, settings=settings, clock=clock, tz=TZ)

    token = await engine.issue_campus_token("X", "", "samosa")

    assert token.token_number == "A-002"
    assert store.claim_attempts == 2


class AlwaysTakenStore(InMemoryRecordStore):
    async def claim(self, key: str) -> bool:
        return False


@pytest.mark.asyncio
async def test_unresolvable_claim_conflict_raises(settings, clock):
    engine = QueueEngine(AlwaysTakenStore(), settings=settings, clock=clock, tz=TZ)

    with pytest.raises(StaleDataError):
        await engine.issue_campus_token("X", "", "samosa")


class FlakyStore(InMemoryRecordStore):
    """The first write fails, later writes succeed."""

    def __init__(self):
        super().__init__()
        self.writes = 0

    async def _write(self, entity_type, record_id, record):
        self.writes += 1
        if self.writes == 1:
            raise ConnectionError("store unavailable")
        await super()._write(entity_type, record_id, record)


@pytest.mark.asyncio
async def test_failed_write_releases_number(settings, clock):
    store = FlakyStore()
    engine = QueueEngine(store, settings=settings, clock=clock, tz=TZ)

    with pytest.raises(StoreWriteError):
        await engine.issue_campus_token("X", "", "samosa")
    token = await engine.issue_campus_token("X", "", "samosa")

    assert token.token_number == "A-001"
    assert [t["token_number"] for t in await store.get_all(EntityType.TOKEN)] == ["A-001"]


@pytest.mark.asyncio
async def test_scope_locks_only_kept_for_current_day(engine, clock):
    clock.set(local(12, day=18))
    await engine.issue_campus_token("X", "", "samosa")
    await engine.issue_online_order("X", "coffee", "e", "p", "pay_1")
    assert list(engine.issuer._locks) == ["2026-10-18"]

    clock.set(local(9, day=19))
    await engine.issue_campus_token("X", "", "samosa")

    assert list(engine.issuer._locks) == ["2026-10-19"]
    assert list(engine.issuer._locks["2026-10-19"]) == ["X:CAMPUS:2026-10-19"]


@pytest.mark.asyncio
async def test_memory_claims_expire_after_ttl():
    ticks = [0.0]
    store = InMemoryRecordStore(claim_ttl_seconds=100, monotonic=lambda: ticks[0])

    assert await store.claim("X:CAMPUS:2026-10-18:1")
    ticks[0] = 50.0
    assert await store.claim("X:CAMPUS:2026-10-18:2")
    ticks[0] = 120.0
    assert await store.claim("X:CAMPUS:2026-10-19:1")

    assert list(store._claims) == ["X:CAMPUS:2026-10-18:2", "X:CAMPUS:2026-10-19:1"]
    assert not await store.claim("X:CAMPUS:2026-10-19:1")
