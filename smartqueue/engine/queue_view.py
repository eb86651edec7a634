"""
SmartQueue — Queue View

Active queues and positions are derived from a fresh store snapshot on
every call, ordered by creation timestamp.
"""
from smartqueue.engine.tokens import by_timestamp, for_canteen, load_token, load_tokens, with_status
from smartqueue.schemas.queue import ACTIVE_STATUSES, OrderStatus, QueueType, Token
from smartqueue.store.base import RecordStore


class QueueView:

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def get_token(self, token_id: str) -> Token | None:
        return await load_token(self._store, token_id)

    async def active_queue(self, canteen_id: str, queue_type: QueueType | None = None) -> list[Token]:
        """WAITING and READY tokens for the canteen, oldest first."""
        tokens = for_canteen(await load_tokens(self._store), canteen_id, queue_type)
        return by_timestamp(with_status(tokens, *ACTIVE_STATUSES))

    async def campus_queue(self, canteen_id: str) -> list[Token]:
        return await self.active_queue(canteen_id, QueueType.CAMPUS)

    async def online_queue(self, canteen_id: str) -> list[Token]:
        return await self.active_queue(canteen_id, QueueType.ONLINE)

    async def queue_position(self, canteen_id: str, token_id: str, queue_type: QueueType | None = None) -> int:
        """1-based rank among WAITING tokens; 0 when the token is not waiting in this scope."""
        tokens = for_canteen(await load_tokens(self._store), canteen_id, queue_type)
        waiting = by_timestamp(with_status(tokens, OrderStatus.WAITING))
        for index, token in enumerate(waiting):
            if token.id == token_id:
                return index + 1
        return 0
