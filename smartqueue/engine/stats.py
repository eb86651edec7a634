"""
SmartQueue — Statistics Aggregator

Pure functions over a token snapshot, scoped to one canteen and the local
calendar day of the aggregator's clock. Nothing here is persisted.

Scoping differs per metric:
  total_orders_today   today's tokens, any status
  average_wait_time    ALL completed tokens for the canteen (not just today)
  active_queue_length  ALL waiting tokens for the canteen
  peak_hour            busiest local hour today
"""
from collections import Counter
from datetime import tzinfo

from smartqueue.engine.clock import (
    Clock,
    hour_label,
    hour_range_label,
    local_hour,
    minutes_between,
    round_half_up,
    start_of_day,
)
from smartqueue.engine.tokens import created_since, for_canteen, load_tokens, with_status
from smartqueue.schemas.queue import (
    HistoryEntry,
    HourlyTraffic,
    OrderStatus,
    OrderSummaryItem,
    QueueStats,
    Token,
)
from smartqueue.store.base import EntityType, RecordStore

DEFAULT_PEAK_HOUR = "12:00 PM - 1:00 PM"
BUSINESS_HOURS = range(9, 19)  # 9 AM .. 6 PM always shown


def average_wait_minutes(tokens: list[Token]) -> int:
    completed = [t for t in tokens if t.status == OrderStatus.COMPLETED and t.completed_at]
    if not completed:
        return 0
    total = sum(minutes_between(t.timestamp, t.completed_at) for t in completed)
    return round_half_up(total / len(completed))


def hourly_counts(tokens: list[Token], tz: tzinfo) -> Counter:
    return Counter(local_hour(t.timestamp, tz) for t in tokens)


def peak_hour_label(counts: Counter) -> str:
    if not counts:
        return DEFAULT_PEAK_HOUR
    busiest = max(sorted(counts), key=lambda h: counts[h])  # ties go to the earliest hour
    return hour_range_label(busiest)


class StatisticsAggregator:

    def __init__(self, store: RecordStore, clock: Clock, tz: tzinfo) -> None:
        self._store = store
        self._clock = clock
        self._tz = tz

    async def _snapshot(self, canteen_id: str) -> tuple[list[Token], list[Token]]:
        """(all tokens for the canteen, today's tokens for the canteen)"""
        tokens = for_canteen(await load_tokens(self._store), canteen_id)
        return tokens, created_since(tokens, start_of_day(self._clock(), self._tz))

    async def stats(self, canteen_id: str) -> QueueStats:
        tokens, today = await self._snapshot(canteen_id)
        return QueueStats(
            total_orders_today=len(today),
            average_wait_time=average_wait_minutes(tokens),
            peak_hour=peak_hour_label(hourly_counts(today, self._tz)),
            active_queue_length=len(with_status(tokens, OrderStatus.WAITING)),
        )

    async def hourly_traffic(self, canteen_id: str) -> list[HourlyTraffic]:
        _, today = await self._snapshot(canteen_id)
        counts = hourly_counts(today, self._tz)
        hours = sorted(set(BUSINESS_HOURS) | set(counts))
        return [HourlyTraffic(hour=h, label=hour_label(h), count=counts.get(h, 0)) for h in hours]

    async def todays_order_summary(self, canteen_id: str) -> list[OrderSummaryItem]:
        """Today's completed tokens grouped by food item, best sellers first."""
        _, today = await self._snapshot(canteen_id)
        counts: dict[str, int] = {}
        prep_minutes: dict[str, float] = {}
        for token in with_status(today, OrderStatus.COMPLETED):
            counts[token.food_item] = counts.get(token.food_item, 0) + 1
            prep_minutes.setdefault(token.food_item, 0.0)
            if token.completed_at:
                prep_minutes[token.food_item] += minutes_between(token.timestamp, token.completed_at)

        summary = [
            OrderSummaryItem(food_item=item, count=count, total_prep_time=round_half_up(prep_minutes[item]))
            for item, count in counts.items()
        ]
        # sorted() is stable with reverse=True, ties keep grouping order
        return sorted(summary, key=lambda s: s.count, reverse=True)

    async def all_history(self) -> list[HistoryEntry]:
        return [HistoryEntry.model_validate(r) for r in await self._store.get_all(EntityType.HISTORY)]

    async def history_for_food(self, food_item: str) -> list[HistoryEntry]:
        return [h for h in await self.all_history() if h.food_item == food_item]
