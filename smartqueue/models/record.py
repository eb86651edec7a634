"""
SmartQueue — SQL tables backing the Record Store

[TRANSACTIONAL DATA] records, sequence_claims
"""
from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from smartqueue.db.database import Base


class StoredRecord(Base):
    """
    One row per (entity type, id). `seq` keeps insertion order;
    `version_id` is bumped on every overwrite.
    """
    __tablename__ = "records"
    __table_args__ = (UniqueConstraint("entity_type", "record_id", name="uq_records_entity_id"),)

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity_type: Mapped[str] = mapped_column(String(32), index=True, nullable=False)
    record_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    data: Mapped[dict] = mapped_column(JSON, nullable=False)
    version_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class SequenceClaim(Base):
    """A claimed token number scope key. The primary key makes each claim unique."""
    __tablename__ = "sequence_claims"

    claim_key: Mapped[str] = mapped_column(String(255), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
