"""
SQLAlchemy ORM Model: SyncRun
Tracks one orchestrator pass over one park. Observability only; the
reconciliation logic never reads it.
"""

from sqlalchemy import Integer, Enum, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column
from models.base import Base
from datetime import datetime
from typing import Optional
import enum


class SyncStatus(str, enum.Enum):
    """Sync run status"""
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


class SyncRun(Base):
    __tablename__ = "sync_runs"

    # Primary Key
    run_id: Mapped[int] = mapped_column(primary_key=True)

    park_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey('parks.park_id', ondelete='CASCADE'),
        nullable=False
    )

    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    finished_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    status: Mapped[SyncStatus] = mapped_column(
        Enum(
            SyncStatus,
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=False,
        default=SyncStatus.PENDING
    )
    error_message: Mapped[Optional[str]] = mapped_column(
        Text,
        comment="Error details if status = error"
    )

    __table_args__ = (
        Index('idx_sync_runs_park_started', 'park_id', 'started_at'),
        {'extend_existing': True}
    )

    def __repr__(self) -> str:
        return f"<SyncRun(run_id={self.run_id}, park_id={self.park_id}, status={self.status.value})>"
