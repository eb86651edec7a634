"""
SmartQueue — SQL Record Store (PostgreSQL via asyncpg in production)

Records are stored as JSON documents, one row per (entity type, id).
A claim is an INSERT into sequence_claims; a primary key collision
means another writer won.
"""
import logging

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine

from smartqueue.db.database import Base, make_sessionmaker
from smartqueue.models.record import SequenceClaim, StoredRecord
from smartqueue.store.base import EntityType, Record, RecordStore

logger = logging.getLogger(__name__)


class SqlRecordStore(RecordStore):

    def __init__(self, engine: AsyncEngine) -> None:
        super().__init__()
        self._engine = engine
        self._sessions = make_sessionmaker(engine)

    async def create_tables(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def get_all(self, entity_type: EntityType) -> list[Record]:
        async with self._sessions() as session:
            result = await session.execute(
                select(StoredRecord.data)
                .where(StoredRecord.entity_type == entity_type.value)
                .order_by(StoredRecord.seq)
            )
            return [dict(row) for row in result.scalars().all()]

    async def get_by_id(self, entity_type: EntityType, record_id: str) -> Record | None:
        async with self._sessions() as session:
            result = await session.execute(
                select(StoredRecord.data).where(
                    StoredRecord.entity_type == entity_type.value,
                    StoredRecord.record_id == record_id,
                )
            )
            data = result.scalar_one_or_none()
            return dict(data) if data is not None else None

    async def _update(self, entity_type: EntityType, record_id: str, record: Record) -> bool:
        async with self._sessions() as session:
            result = await session.execute(
                update(StoredRecord)
                .where(
                    StoredRecord.entity_type == entity_type.value,
                    StoredRecord.record_id == record_id,
                )
                .values(data=record, version_id=StoredRecord.version_id + 1)
            )
            await session.commit()
            return result.rowcount > 0

    async def _write(self, entity_type: EntityType, record_id: str, record: Record) -> None:
        if await self._update(entity_type, record_id, record):
            return
        try:
            async with self._sessions() as session:
                session.add(StoredRecord(entity_type=entity_type.value, record_id=record_id, data=record))
                await session.commit()
        except IntegrityError:
            # A concurrent first write inserted the row; overwrite it instead
            if not await self._update(entity_type, record_id, record):
                raise

    async def claim(self, key: str) -> bool:
        async with self._sessions() as session:
            session.add(SequenceClaim(claim_key=key))
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                return False
        return True

    async def release(self, key: str) -> None:
        async with self._sessions() as session:
            await session.execute(delete(SequenceClaim).where(SequenceClaim.claim_key == key))
            await session.commit()

    async def start(self) -> None:
        await self.create_tables()

    async def ping(self) -> None:
        async with self._engine.connect() as conn:
            await conn.execute(select(1))

    async def close(self) -> None:
        await self._engine.dispose()
