"""
Queue View tests — active queue ordering and 1-based positions
"""
import pytest

from smartqueue.schemas.queue import OrderStatus, QueueType, Token
from smartqueue.store.base import EntityType

from tests.conftest import local


async def _issue_three(engine, clock):
    tokens = []
    for item in ("samosa", "coffee", "vadapav"):
        tokens.append(await engine.issue_campus_token("X", "", item))
        clock.advance(minutes=2)
    return tokens


@pytest.mark.asyncio
async def test_position_scenario(engine, clock):
    first, second, third = await _issue_three(engine, clock)

    assert [t.token_number for t in (first, second, third)] == ["A-001", "A-002", "A-003"]
    assert await engine.queue_position("X", second.id) == 2

    await engine.mark_ready(first.id)

    assert await engine.queue_position("X", first.id) == 0
    assert await engine.queue_position("X", second.id) == 1
    assert await engine.queue_position("X", third.id) == 2


@pytest.mark.asyncio
async def test_position_is_idempotent(engine, clock):
    _, second, _ = await _issue_three(engine, clock)

    assert await engine.queue_position("X", second.id) == await engine.queue_position("X", second.id)


@pytest.mark.asyncio
async def test_position_zero_for_unknown_or_foreign_token(engine, clock):
    first, _, _ = await _issue_three(engine, clock)

    assert await engine.queue_position("X", "does-not-exist") == 0
    assert await engine.queue_position("OTHER", first.id) == 0


@pytest.mark.asyncio
async def test_position_with_queue_type_filter(engine, clock):
    campus = await engine.issue_campus_token("X", "", "samosa")
    clock.advance(minutes=1)
    online = await engine.issue_online_order("X", "samosa", "e", "p", "pay_1")

    assert await engine.queue_position("X", online.id) == 2
    assert await engine.queue_position("X", online.id, QueueType.ONLINE) == 1
    assert await engine.queue_position("X", campus.id, QueueType.ONLINE) == 0


@pytest.mark.asyncio
async def test_active_queue_includes_ready_and_excludes_terminal(engine, clock):
    first, second, third = await _issue_three(engine, clock)
    await engine.mark_ready(first.id)
    await engine.complete(second.id)

    queue = await engine.active_queue("X")

    assert [t.id for t in queue] == [first.id, third.id]
    assert [t.status for t in queue] == [OrderStatus.READY, OrderStatus.WAITING]


@pytest.mark.asyncio
async def test_active_queue_is_ordered_by_timestamp_not_store_order(engine, store):
    late = Token(id="late", canteen_id="X", token_number="A-002", food_item="samosa",
                 timestamp=local(11), estimated_wait_time_minutes=5)
    early = Token(id="early", canteen_id="X", token_number="A-001", food_item="samosa",
                  timestamp=local(9), estimated_wait_time_minutes=5)
    await store.upsert(EntityType.TOKEN, late.id, late.model_dump(mode="json"))
    await store.upsert(EntityType.TOKEN, early.id, early.model_dump(mode="json"))

    assert [t.id for t in await engine.active_queue("X")] == ["early", "late"]
    assert await engine.queue_position("X", "early") == 1


@pytest.mark.asyncio
async def test_campus_and_online_queues(engine):
    campus = await engine.issue_campus_token("X", "", "samosa")
    online = await engine.issue_online_order("X", "coffee", "e", "p", "pay_1")

    assert [t.id for t in await engine.queues.campus_queue("X")] == [campus.id]
    assert [t.id for t in await engine.queues.online_queue("X")] == [online.id]
