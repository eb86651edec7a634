"""
SmartQueue — In-process Record Store

Used for single-process deployments and tests. Insertion order is kept.
Claims expire after CLAIM_TTL_SECONDS, like the Redis backend's claim keys.
"""
import copy
import time
from collections import OrderedDict
from typing import Callable

from smartqueue.store.base import CLAIM_TTL_SECONDS, EntityType, Record, RecordStore


class InMemoryRecordStore(RecordStore):

    def __init__(self, claim_ttl_seconds: float = CLAIM_TTL_SECONDS,
                 monotonic: Callable[[], float] = time.monotonic) -> None:
        super().__init__()
        self._records: dict[EntityType, dict[str, Record]] = {e: {} for e in EntityType}
        # key -> claimed-at, oldest first
        self._claims: OrderedDict[str, float] = OrderedDict()
        self._claim_ttl = claim_ttl_seconds
        self._monotonic = monotonic

    async def get_all(self, entity_type: EntityType) -> list[Record]:
        return [copy.deepcopy(r) for r in self._records[entity_type].values()]

    async def get_by_id(self, entity_type: EntityType, record_id: str) -> Record | None:
        record = self._records[entity_type].get(record_id)
        return copy.deepcopy(record) if record is not None else None

    async def _write(self, entity_type: EntityType, record_id: str, record: Record) -> None:
        self._records[entity_type][record_id] = copy.deepcopy(record)

    async def claim(self, key: str) -> bool:
        now = self._monotonic()
        self._expire_claims(now)
        if key in self._claims:
            return False
        self._claims[key] = now
        return True

    async def release(self, key: str) -> None:
        self._claims.pop(key, None)

    def _expire_claims(self, now: float) -> None:
        while self._claims:
            key, claimed_at = next(iter(self._claims.items()))
            if now - claimed_at < self._claim_ttl:
                break
            del self._claims[key]
