"""
SmartQueue — Record Store port

Every backend exposes the same four operations per entity type (get-all,
get-by-id, upsert, subscribe) plus `claim`, a one-shot reservation of a
key used to serialize token number allocation across writers, and
`release`, which gives a claim back when the record behind it was not written.

Records are plain JSON-compatible dicts; conversion to schemas happens in
the engine. get_all() returns records in insertion order where the
backend can preserve it, but callers must not rely on it.
"""
import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Awaitable, Callable, Union

logger = logging.getLogger(__name__)

Record = dict[str, Any]
ChangeCallback = Callable[["EntityType", str], Union[None, Awaitable[None]]]

CLAIM_TTL_SECONDS = 2 * 24 * 3600  # claims outlive the local day they number


class StoreWriteError(Exception):
    """Raised by callers that cannot proceed without a durable local write."""


class EntityType(str, Enum):
    CANTEEN = "canteens"
    TOKEN = "tokens"
    HISTORY = "history"


class RecordStore(ABC):
    """Abstract durable mapping from entity id to record, per entity type."""

    def __init__(self) -> None:
        self._observers: dict[EntityType, list[ChangeCallback]] = {e: [] for e in EntityType}
        self._pending: set[asyncio.Task] = set()

    @abstractmethod
    async def get_all(self, entity_type: EntityType) -> list[Record]:
        ...

    @abstractmethod
    async def get_by_id(self, entity_type: EntityType, record_id: str) -> Record | None:
        ...

    @abstractmethod
    async def _write(self, entity_type: EntityType, record_id: str, record: Record) -> None:
        ...

    @abstractmethod
    async def claim(self, key: str) -> bool:
        """Reserve `key` once. Returns False if another writer already holds it."""

    @abstractmethod
    async def release(self, key: str) -> None:
        """Drop a claim whose record was never written."""

    async def start(self) -> None:
        """Prepare the backend (tables, listeners). Called once at startup."""

    async def ping(self) -> None:
        """Raise if the backend is unreachable."""

    async def close(self) -> None:
        pass

    async def upsert(self, entity_type: EntityType, record_id: str, record: Record) -> bool:
        """Write a record and broadcast a change. Failures are reported, not raised."""
        try:
            await self._write(entity_type, record_id, record)
        except Exception as exc:
            logger.warning("Store write failed for %s/%s: %s", entity_type.value, record_id, exc)
            return False
        self.notify(entity_type, record_id)
        return True

    # ── Change notification ──────────────────────────────────────────────────

    def subscribe(self, entity_type: EntityType, callback: ChangeCallback) -> Callable[[], None]:
        """Register an observer. Returns a function that unregisters it."""
        observers = self._observers[entity_type]
        observers.append(callback)

        def unsubscribe() -> None:
            if callback in observers:
                observers.remove(callback)

        return unsubscribe

    def notify(self, entity_type: EntityType, record_id: str) -> None:
        """Fire-and-forget broadcast to local observers."""
        for callback in list(self._observers[entity_type]):
            try:
                result = callback(entity_type, record_id)
                if inspect.isawaitable(result):
                    task = asyncio.ensure_future(result)
                    self._pending.add(task)
                    task.add_done_callback(self._observer_done)
            except Exception as exc:
                # Observer failures MUST NOT affect the write
                logger.warning("Change observer failed for %s/%s: %s", entity_type.value, record_id, exc)

    def _observer_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Change observer failed: %s", task.exception())
