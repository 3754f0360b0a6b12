"""
SQLAlchemy ORM Model: SiteAvailability
Current availability of one site for one night. Holds current truth only;
rows are overwritten on every sync and never used as history.
"""

from sqlalchemy import Boolean, Date, DateTime, Integer, ForeignKey, UniqueConstraint, Index, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from models.base import Base
from datetime import datetime, date


class SiteAvailability(Base):
    __tablename__ = "site_availability"
    __table_args__ = (
        UniqueConstraint('site_id', 'availability_date', name='site_availability_unique'),
        Index('idx_available_dates', 'site_id', 'is_available', 'availability_date'),
        {'extend_existing': True}
    )

    # Primary Key
    availability_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Foreign Key
    site_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey('sites.site_id', ondelete='CASCADE'),
        nullable=False
    )

    availability_date: Mapped[date] = mapped_column(Date, nullable=False, comment="Night of stay")
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now()
    )

    # Relationships
    site: Mapped["Site"] = relationship("Site", back_populates="availability", lazy="select")

    def __repr__(self) -> str:
        return (
            f"<SiteAvailability(site_id={self.site_id}, date={self.availability_date}, "
            f"is_available={self.is_available})>"
        )
