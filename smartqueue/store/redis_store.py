"""
SmartQueue — Redis-backed Record Store

Layout:
  {prefix}:{entity}          hash, record id -> JSON record
  {prefix}:claim:{key}       SET NX marker for token number claims (expires after 2 days)
  {prefix}:changes           pub/sub channel, one message per write

Writes from other processes arrive over pub/sub and are re-broadcast to
local observers, so every instance sees every change.
"""
import asyncio
import json
import logging
import uuid

import redis.asyncio as aioredis

from smartqueue.store.base import CLAIM_TTL_SECONDS, EntityType, Record, RecordStore

logger = logging.getLogger(__name__)


class RedisRecordStore(RecordStore):

    def __init__(self, redis: aioredis.Redis, prefix: str = "smartqueue") -> None:
        super().__init__()
        self._redis = redis
        self._prefix = prefix
        self._origin = uuid.uuid4().hex
        self._listener: asyncio.Task | None = None

    @property
    def channel(self) -> str:
        return f"{self._prefix}:changes"

    def _key(self, entity_type: EntityType) -> str:
        return f"{self._prefix}:{entity_type.value}"

    async def get_all(self, entity_type: EntityType) -> list[Record]:
        raw = await self._redis.hgetall(self._key(entity_type))
        return [json.loads(v) for v in raw.values()]

    async def get_by_id(self, entity_type: EntityType, record_id: str) -> Record | None:
        raw = await self._redis.hget(self._key(entity_type), record_id)
        return json.loads(raw) if raw is not None else None

    async def _write(self, entity_type: EntityType, record_id: str, record: Record) -> None:
        await self._redis.hset(self._key(entity_type), record_id, json.dumps(record))

    async def claim(self, key: str) -> bool:
        claimed = await self._redis.set(
            f"{self._prefix}:claim:{key}", self._origin, nx=True, ex=CLAIM_TTL_SECONDS
        )
        return bool(claimed)

    async def release(self, key: str) -> None:
        await self._redis.delete(f"{self._prefix}:claim:{key}")

    async def ping(self) -> None:
        await self._redis.ping()

    def notify(self, entity_type: EntityType, record_id: str, *, local_only: bool = False) -> None:
        super().notify(entity_type, record_id)
        if not local_only:
            task = asyncio.ensure_future(self._publish(entity_type, record_id))
            self._pending.add(task)
            task.add_done_callback(self._observer_done)

    async def _publish(self, entity_type: EntityType, record_id: str) -> None:
        try:
            await self._redis.publish(
                self.channel,
                json.dumps({"entity": entity_type.value, "id": record_id, "origin": self._origin}),
            )
        except Exception as exc:
            logger.warning("Change publish failed for %s/%s: %s", entity_type.value, record_id, exc)

    # ── Cross-process listener ───────────────────────────────────────────────

    async def start(self) -> None:
        self.start_listener()

    def start_listener(self) -> None:
        if self._listener is None:
            self._listener = asyncio.create_task(self._listen())

    async def _listen(self) -> None:
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(self.channel)
        try:
            while True:
                message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                if not message or message["type"] != "message":
                    continue
                try:
                    payload = json.loads(message["data"])
                    if payload.get("origin") == self._origin:
                        continue
                    self.notify(EntityType(payload["entity"]), payload["id"], local_only=True)
                except (ValueError, KeyError) as exc:
                    logger.warning("Ignoring malformed change message: %s", exc)
        finally:
            await pubsub.unsubscribe(self.channel)
            await pubsub.aclose()

    async def close(self) -> None:
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            self._listener = None
