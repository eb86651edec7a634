"""
SmartQueue — Best-effort replication to a remote realtime database

The primary store is ground truth. After every successful local write the
record is PUT to `{REMOTE_DB_URL}/{entity}/{id}.json` (Firebase Realtime
Database REST layout) in a background task, so callers never wait on the
remote. Mirror failures are logged and dropped: no retry queue, never
surfaced to the caller.
"""
import asyncio
import logging

import httpx

from smartqueue.store.base import ChangeCallback, EntityType, Record, RecordStore

logger = logging.getLogger(__name__)


class RemoteMirror:

    def __init__(self, base_url: str, auth: str = "", timeout: float = 5.0,
                 transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._params = {"auth": auth} if auth else {}
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def put(self, entity_type: EntityType, record_id: str, record: Record) -> bool:
        try:
            r = await self._client.put(
                f"{self._base_url}/{entity_type.value}/{record_id}.json",
                json=record,
                params=self._params,
            )
            r.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Remote mirror write failed for %s/%s: %s", entity_type.value, record_id, exc)
            return False
        return True

    async def aclose(self) -> None:
        await self._client.aclose()


class MirroredRecordStore(RecordStore):
    """Wraps a primary store; reads, claims and notifications go to the primary."""

    def __init__(self, primary: RecordStore, mirror: RemoteMirror) -> None:
        super().__init__()
        self.primary = primary
        self.mirror = mirror

    async def get_all(self, entity_type: EntityType) -> list[Record]:
        return await self.primary.get_all(entity_type)

    async def get_by_id(self, entity_type: EntityType, record_id: str) -> Record | None:
        return await self.primary.get_by_id(entity_type, record_id)

    async def _write(self, entity_type: EntityType, record_id: str, record: Record) -> None:
        await self.primary._write(entity_type, record_id, record)

    async def upsert(self, entity_type: EntityType, record_id: str, record: Record) -> bool:
        ok = await self.primary.upsert(entity_type, record_id, record)
        if ok:
            task = asyncio.ensure_future(self.mirror.put(entity_type, record_id, record))
            self._pending.add(task)
            task.add_done_callback(self._observer_done)
        return ok

    async def drain(self) -> None:
        """Wait for in-flight mirror writes."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def claim(self, key: str) -> bool:
        return await self.primary.claim(key)

    async def release(self, key: str) -> None:
        await self.primary.release(key)

    def subscribe(self, entity_type: EntityType, callback: ChangeCallback):
        return self.primary.subscribe(entity_type, callback)

    def notify(self, entity_type: EntityType, record_id: str) -> None:
        self.primary.notify(entity_type, record_id)

    async def start(self) -> None:
        await self.primary.start()

    async def ping(self) -> None:
        await self.primary.ping()

    async def close(self) -> None:
        await self.drain()
        await self.mirror.aclose()
        await self.primary.close()
