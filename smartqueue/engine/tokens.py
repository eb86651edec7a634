"""
SmartQueue — Token snapshot helpers shared by the engine components
"""
import uuid
from datetime import datetime

from smartqueue.schemas.queue import OrderStatus, QueueType, Token
from smartqueue.store.base import EntityType, RecordStore


def new_id() -> str:
    return str(uuid.uuid4())


async def load_tokens(store: RecordStore) -> list[Token]:
    return [Token.model_validate(r) for r in await store.get_all(EntityType.TOKEN)]


async def load_token(store: RecordStore, token_id: str) -> Token | None:
    record = await store.get_by_id(EntityType.TOKEN, token_id)
    return Token.model_validate(record) if record is not None else None


def for_canteen(tokens: list[Token], canteen_id: str, queue_type: QueueType | None = None) -> list[Token]:
    return [
        t for t in tokens
        if t.canteen_id == canteen_id and (queue_type is None or t.queue_type == queue_type)
    ]


def created_since(tokens: list[Token], since: datetime) -> list[Token]:
    return [t for t in tokens if t.timestamp >= since]


def with_status(tokens: list[Token], *statuses: OrderStatus) -> list[Token]:
    return [t for t in tokens if t.status in statuses]


def by_timestamp(tokens: list[Token]) -> list[Token]:
    # stable: equal timestamps keep store read order
    return sorted(tokens, key=lambda t: t.timestamp)
