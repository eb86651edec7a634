"""
SmartQueue — Token Issuer

Token numbers are "A-" + zero-padded sequence, scoped to
(canteen, queue type, local calendar day), starting at 1.

The sequence is count-of-scope + 1, as read from the store. Issuance for
one scope is serialized in-process by an asyncio.Lock, and across
processes by claiming the scope/sequence key in the store before the
write: a lost claim raises StaleDataError and the read is retried. A
claim whose token could not be written is released again.
"""
import asyncio
import logging
from datetime import datetime, tzinfo

from smartqueue.core.config import Settings
from smartqueue.core.optimistic_lock import StaleDataError, with_optimistic_retry
from smartqueue.engine.clock import Clock, start_of_day
from smartqueue.engine.tokens import created_since, for_canteen, load_tokens, new_id
from smartqueue.schemas.queue import OrderStatus, PaymentStatus, QueueType, Token
from smartqueue.store.base import EntityType, RecordStore, StoreWriteError

logger = logging.getLogger(__name__)


def format_token_number(sequence: int, prefix: str = "A-") -> str:
    return f"{prefix}{sequence:03d}"


class TokenIssuer:

    def __init__(self, store: RecordStore, clock: Clock, tz: tzinfo, settings: Settings) -> None:
        self._store = store
        self._clock = clock
        self._tz = tz
        self._settings = settings
        self._locks: dict[str, dict[str, asyncio.Lock]] = {}

    async def issue_campus_token(self, canteen_id: str, coupon_code: str, food_item: str) -> Token:
        return await self._issue(
            canteen_id,
            QueueType.CAMPUS,
            food_item=food_item,
            coupon_code=coupon_code,
            estimated_wait_time_minutes=self._settings.CAMPUS_ESTIMATED_WAIT_MINUTES,
        )

    async def issue_online_order(
        self,
        canteen_id: str,
        food_item: str,
        user_email: str,
        user_phone: str,
        payment_id: str,
    ) -> Token:
        """Payment must already be confirmed by the caller; no verification happens here."""
        return await self._issue(
            canteen_id,
            QueueType.ONLINE,
            food_item=food_item,
            coupon_code="",
            estimated_wait_time_minutes=self._settings.ONLINE_ESTIMATED_WAIT_MINUTES,
            payment_id=payment_id,
            payment_status=PaymentStatus.COMPLETED,
            user_email=user_email,
            user_phone=user_phone,
        )

    def _lock_for(self, day_key: str, scope: str) -> asyncio.Lock:
        # Locks are kept for the current local day only
        if day_key not in self._locks:
            self._locks = {day_key: {}}
        return self._locks[day_key].setdefault(scope, asyncio.Lock())

    async def _issue(self, canteen_id: str, queue_type: QueueType, **fields) -> Token:
        now = self._clock()
        day = start_of_day(now, self._tz)
        day_key = day.date().isoformat()
        scope = f"{canteen_id}:{queue_type.value}:{day_key}"
        async with self._lock_for(day_key, scope):
            token = await self._claim_and_write(scope, canteen_id, queue_type, now, day, fields)
        logger.info(
            "Issued %s token %s for canteen %s (%s)",
            queue_type.value, token.token_number, canteen_id, token.id,
        )
        return token

    @with_optimistic_retry()
    async def _claim_and_write(
        self,
        scope: str,
        canteen_id: str,
        queue_type: QueueType,
        now: datetime,
        day: datetime,
        fields: dict,
    ) -> Token:
        tokens = created_since(for_canteen(await load_tokens(self._store), canteen_id, queue_type), day)
        sequence = len(tokens) + 1
        if not await self._store.claim(f"{scope}:{sequence}"):
            raise StaleDataError(f"Token number {sequence} already claimed in scope {scope}")

        token = Token(
            id=new_id(),
            canteen_id=canteen_id,
            token_number=format_token_number(sequence, self._settings.TOKEN_PREFIX),
            status=OrderStatus.WAITING,
            queue_type=queue_type,
            timestamp=now,
            **fields,
        )
        if not await self._store.upsert(EntityType.TOKEN, token.id, token.model_dump(mode="json")):
            await self._release(f"{scope}:{sequence}")
            raise StoreWriteError(f"Could not persist token {token.token_number} for canteen {canteen_id}")
        return token

    async def _release(self, key: str) -> None:
        try:
            await self._store.release(key)
        except Exception as exc:
            logger.warning("Could not release token number claim %s: %s", key, exc)
