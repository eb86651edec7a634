"""
SmartQueue — Demo data seeding

Fills today's campus queue of one canteen with completed orders spread
evenly from 8 AM to 8 PM, cycling through the menu, each completed
within 30 minutes. Existing tokens are kept; numbering continues after them.
"""
import logging
import random
from datetime import timedelta

from smartqueue.engine import QueueEngine
from smartqueue.engine.clock import start_of_day
from smartqueue.engine.issuer import format_token_number
from smartqueue.engine.menu import MENU_ITEMS
from smartqueue.engine.tokens import created_since, for_canteen, load_tokens, new_id
from smartqueue.schemas.queue import OrderStatus, QueueType, Token
from smartqueue.store.base import EntityType

logger = logging.getLogger(__name__)

DAY_OPEN_HOUR = 8
SPREAD = timedelta(hours=12)
MAX_COMPLETION = timedelta(minutes=30)


async def seed_demo_data(engine: QueueEngine, canteen_id: str, count: int = 400,
                         rng: random.Random | None = None) -> int:
    rng = rng or random.Random()
    day = start_of_day(engine.clock(), engine.tz)
    opening = day + timedelta(hours=DAY_OPEN_HOUR)
    existing = created_since(
        for_canteen(await load_tokens(engine.store), canteen_id, QueueType.CAMPUS), day
    )

    for i in range(count):
        timestamp = opening + SPREAD * (i / count)
        token = Token(
            id=new_id(),
            canteen_id=canteen_id,
            token_number=format_token_number(len(existing) + i + 1, engine.settings.TOKEN_PREFIX),
            food_item=MENU_ITEMS[i % len(MENU_ITEMS)].id,
            status=OrderStatus.COMPLETED,
            queue_type=QueueType.CAMPUS,
            timestamp=timestamp,
            completed_at=timestamp + MAX_COMPLETION * rng.random(),
            estimated_wait_time_minutes=rng.randint(5, 19),
        )
        await engine.store.upsert(EntityType.TOKEN, token.id, token.model_dump(mode="json"))

    logger.info("Demo data initialized: %d completed orders for canteen %s", count, canteen_id)
    return count
