"""
SmartQueue — Order Lifecycle

    WAITING -> READY -> COMPLETED
    WAITING | READY -> CANCELLED

Unknown ids are a silent no-op. Transitions out of a terminal state are
refused (logged, nothing written); the one exception is attaching
ai_reasoning to an already completed token.
"""
import logging
from datetime import tzinfo

from smartqueue.engine.clock import Clock, local_hour, minutes_between, round_half_up
from smartqueue.engine.tokens import load_token, new_id
from smartqueue.schemas.queue import ACTIVE_STATUSES, HistoryEntry, OrderStatus, Token
from smartqueue.store.base import EntityType, RecordStore

logger = logging.getLogger(__name__)


class OrderLifecycle:

    def __init__(self, store: RecordStore, clock: Clock, tz: tzinfo) -> None:
        self._store = store
        self._clock = clock
        self._tz = tz

    async def _save(self, token: Token) -> None:
        await self._store.upsert(EntityType.TOKEN, token.id, token.model_dump(mode="json"))

    async def _load(self, token_id: str) -> Token | None:
        token = await load_token(self._store, token_id)
        if token is None:
            logger.debug("Token %s not found, ignoring", token_id)
        return token

    async def mark_ready(self, token_id: str) -> Token | None:
        token = await self._load(token_id)
        if token is None:
            return None
        if token.status != OrderStatus.WAITING:
            logger.info("Token %s is %s, not marking ready", token.token_number, token.status.value)
            return token
        token.status = OrderStatus.READY
        await self._save(token)
        logger.info("Token %s: ready for pickup", token.token_number)
        return token

    async def complete(self, token_id: str) -> Token | None:
        token = await self._load(token_id)
        if token is None:
            return None
        if token.status not in ACTIVE_STATUSES:
            logger.info("Token %s is already %s", token.token_number, token.status.value)
            return token
        self._finish(token)
        await self._save(token)
        logger.info("Token %s: completed", token.token_number)
        return token

    async def complete_with_annotation(self, token_id: str, reasoning: str | None = None) -> Token | None:
        """Complete the token and append one HistoryEntry with its prep time."""
        token = await self._load(token_id)
        if token is None:
            return None

        if token.status not in ACTIVE_STATUSES:
            if reasoning and token.status == OrderStatus.COMPLETED:
                token.ai_reasoning = reasoning
                await self._save(token)
            return token

        self._finish(token)
        if reasoning:
            token.ai_reasoning = reasoning
        await self._save(token)

        entry = HistoryEntry(
            id=new_id(),
            food_item=token.food_item,
            prep_time_minutes=round_half_up(minutes_between(token.timestamp, token.completed_at)),
            hour=local_hour(token.timestamp, self._tz),
            timestamp=token.completed_at,
        )
        await self._store.upsert(EntityType.HISTORY, entry.id, entry.model_dump(mode="json"))
        logger.info(
            "Token %s: completed in %d min (%s)",
            token.token_number, entry.prep_time_minutes, token.food_item,
        )
        return token

    async def cancel(self, token_id: str) -> Token | None:
        token = await self._load(token_id)
        if token is None:
            return None
        if token.status not in ACTIVE_STATUSES:
            return token
        token.status = OrderStatus.CANCELLED
        await self._save(token)
        logger.info("Token %s: cancelled", token.token_number)
        return token

    async def update_estimation(self, token_id: str, minutes: int, reasoning: str | None = None) -> Token | None:
        token = await self._load(token_id)
        if token is None:
            return None
        if token.is_terminal:
            if reasoning:
                token.ai_reasoning = reasoning
                await self._save(token)
            return token
        token.estimated_wait_time_minutes = minutes
        if reasoning:
            token.ai_reasoning = reasoning
        await self._save(token)
        return token

    def _finish(self, token: Token) -> None:
        now = self._clock()
        token.status = OrderStatus.COMPLETED
        # clock skew between writers must not break completed_at >= timestamp
        token.completed_at = max(now, token.timestamp)
