"""
SmartQueue — Token/queue state engine

QueueEngine wires the issuer, queue view, lifecycle, statistics and
canteen registry to one Record Store and one clock.
"""
from datetime import tzinfo

from smartqueue.core.config import Settings, get_settings
from smartqueue.engine.canteens import CanteenRegistry
from smartqueue.engine.clock import Clock, system_clock
from smartqueue.engine.issuer import TokenIssuer
from smartqueue.engine.lifecycle import OrderLifecycle
from smartqueue.engine.queue_view import QueueView
from smartqueue.engine.stats import StatisticsAggregator
from smartqueue.store.base import RecordStore


class QueueEngine:

    def __init__(
        self,
        store: RecordStore,
        settings: Settings | None = None,
        clock: Clock | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.tz = tz or self.settings.tzinfo
        self.clock = clock or system_clock(self.tz)
        self.store = store

        self.canteens = CanteenRegistry(store)
        self.issuer = TokenIssuer(store, self.clock, self.tz, self.settings)
        self.queues = QueueView(store)
        self.lifecycle = OrderLifecycle(store, self.clock, self.tz)
        self.statistics = StatisticsAggregator(store, self.clock, self.tz)

    # Flat surface for callers that don't care about the component split

    async def issue_campus_token(self, canteen_id: str, coupon_code: str, food_item: str):
        return await self.issuer.issue_campus_token(canteen_id, coupon_code, food_item)

    async def issue_online_order(self, canteen_id: str, food_item: str, user_email: str,
                                 user_phone: str, payment_id: str):
        return await self.issuer.issue_online_order(canteen_id, food_item, user_email, user_phone, payment_id)

    async def active_queue(self, canteen_id: str, queue_type=None):
        return await self.queues.active_queue(canteen_id, queue_type)

    async def queue_position(self, canteen_id: str, token_id: str, queue_type=None) -> int:
        return await self.queues.queue_position(canteen_id, token_id, queue_type)

    async def mark_ready(self, token_id: str):
        return await self.lifecycle.mark_ready(token_id)

    async def complete(self, token_id: str):
        return await self.lifecycle.complete(token_id)

    async def complete_with_annotation(self, token_id: str, reasoning: str | None = None):
        return await self.lifecycle.complete_with_annotation(token_id, reasoning)

    async def stats(self, canteen_id: str):
        return await self.statistics.stats(canteen_id)

    async def hourly_traffic(self, canteen_id: str):
        return await self.statistics.hourly_traffic(canteen_id)

    async def todays_order_summary(self, canteen_id: str):
        return await self.statistics.todays_order_summary(canteen_id)


__all__ = ["QueueEngine"]
