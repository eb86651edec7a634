"""
Statistics tests — daily scoping, all-time average, traffic and summary
"""
from datetime import timedelta

import pytest

from smartqueue.engine.stats import DEFAULT_PEAK_HOUR
from smartqueue.schemas.queue import OrderStatus, Token
from smartqueue.store.base import EntityType

from tests.conftest import local


async def _put(store, token_id, created, status=OrderStatus.WAITING, food="samosa",
               prep_minutes=None, canteen="X"):
    token = Token(
        id=token_id,
        canteen_id=canteen,
        token_number=f"A-{token_id}",
        food_item=food,
        status=status,
        timestamp=created,
        completed_at=created + timedelta(minutes=prep_minutes) if prep_minutes is not None else None,
        estimated_wait_time_minutes=5,
    )
    await store.upsert(EntityType.TOKEN, token.id, token.model_dump(mode="json"))
    return token


@pytest.mark.asyncio
async def test_empty_canteen(engine):
    stats = await engine.stats("X")

    assert stats.total_orders_today == 0
    assert stats.average_wait_time == 0
    assert stats.active_queue_length == 0
    assert stats.peak_hour == DEFAULT_PEAK_HOUR


@pytest.mark.asyncio
async def test_average_wait_covers_all_days(engine, store):
    await _put(store, "yesterday", local(12, day=18), OrderStatus.COMPLETED, prep_minutes=10)
    await _put(store, "today", local(9), OrderStatus.COMPLETED, prep_minutes=5)

    stats = await engine.stats("X")

    assert stats.total_orders_today == 1
    assert stats.average_wait_time == 8  # 7.5 rounds half up


@pytest.mark.asyncio
async def test_counts_are_scoped_to_canteen(engine, store):
    await _put(store, "1", local(9))
    await _put(store, "2", local(9), canteen="Y")

    assert (await engine.stats("X")).total_orders_today == 1
    assert (await engine.stats("Y")).active_queue_length == 1


@pytest.mark.asyncio
async def test_active_queue_length_counts_waiting_only(engine, store):
    await _put(store, "1", local(9))
    await _put(store, "2", local(9, 5), OrderStatus.READY)
    await _put(store, "3", local(9, 10), OrderStatus.COMPLETED, prep_minutes=4)
    await _put(store, "4", local(17, day=18))

    assert (await engine.stats("X")).active_queue_length == 2


@pytest.mark.asyncio
async def test_peak_hour_is_busiest_hour_today(engine, store):
    await _put(store, "1", local(9))
    await _put(store, "2", local(10, 5))
    await _put(store, "3", local(10, 20))
    await _put(store, "4", local(13, day=18))
    await _put(store, "5", local(13, 5, day=18))
    await _put(store, "6", local(13, 10, day=18))

    assert (await engine.stats("X")).peak_hour == "10:00 AM - 11:00 AM"


@pytest.mark.asyncio
async def test_peak_hour_tie_goes_to_earliest(engine, store):
    await _put(store, "1", local(10))
    await _put(store, "2", local(9))

    assert (await engine.stats("X")).peak_hour == "9:00 AM - 10:00 AM"


@pytest.mark.asyncio
async def test_hourly_traffic_empty_day_shows_business_hours(engine):
    traffic = await engine.hourly_traffic("X")

    assert [t.hour for t in traffic] == list(range(9, 19))
    assert all(t.count == 0 for t in traffic)
    assert traffic[0].label == "9 AM"
    assert traffic[3].label == "12 PM"
    assert traffic[-1].label == "6 PM"


@pytest.mark.asyncio
async def test_hourly_traffic_adds_hours_outside_business_range(engine, store):
    await _put(store, "1", local(7, 45))
    await _put(store, "2", local(10))
    await _put(store, "3", local(10, 10))
    await _put(store, "4", local(8, day=18))

    traffic = {t.hour: t.count for t in await engine.hourly_traffic("X")}

    assert list(traffic) == [7] + list(range(9, 19))
    assert traffic[7] == 1
    assert traffic[10] == 2
    assert 8 not in traffic


@pytest.mark.asyncio
async def test_order_summary_groups_completed_and_sorts_by_count(engine, store):
    await _put(store, "1", local(9), OrderStatus.COMPLETED, food="coffee", prep_minutes=2)
    await _put(store, "2", local(9, 5), OrderStatus.COMPLETED, food="samosa", prep_minutes=4.5)
    await _put(store, "3", local(9, 10), OrderStatus.COMPLETED, food="samosa", prep_minutes=6)
    await _put(store, "4", local(9, 15), OrderStatus.WAITING, food="samosa")
    await _put(store, "5", local(9, 20), OrderStatus.COMPLETED, food="vadapav", prep_minutes=3)
    await _put(store, "6", local(11, day=18), OrderStatus.COMPLETED, food="vadapav", prep_minutes=3)

    summary = await engine.todays_order_summary("X")

    assert [(s.food_item, s.count, s.total_prep_time) for s in summary] == [
        ("samosa", 2, 11),
        ("coffee", 1, 2),
        ("vadapav", 1, 3),
    ]


@pytest.mark.asyncio
async def test_order_summary_empty(engine):
    assert await engine.todays_order_summary("X") == []


@pytest.mark.asyncio
async def test_history_filter_by_food(engine, clock):
    for item in ("samosa", "coffee", "samosa"):
        token = await engine.issue_campus_token("X", "", item)
        clock.advance(minutes=4)
        await engine.complete_with_annotation(token.id)

    assert len(await engine.statistics.all_history()) == 3
    assert {h.food_item for h in await engine.statistics.history_for_food("samosa")} == {"samosa"}
    assert len(await engine.statistics.history_for_food("samosa")) == 2
