"""
SQLAlchemy ORM Model: Facility
A named campground area of a park (e.g. "Bluff Camp (sites 44-66)").
"""

from sqlalchemy import String, Boolean, DateTime, Integer, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from models.base import Base
from datetime import datetime
from typing import List


class Facility(Base):
    __tablename__ = "facilities"
    __table_args__ = (
        UniqueConstraint('park_id', 'external_facility_id', name='facility_park_external_unique'),
        {'extend_existing': True}
    )

    # Primary Key
    facility_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Foreign Key
    park_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey('parks.park_id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )

    external_facility_id: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="FacilityId assigned by ReserveCalifornia"
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Inactive facilities are skipped by the sync"
    )

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
    park: Mapped["Park"] = relationship("Park", back_populates="facilities", lazy="select")
    sites: Mapped[List["Site"]] = relationship("Site", back_populates="facility", lazy="select")

    def __repr__(self) -> str:
        return (
            f"<Facility(facility_id={self.facility_id}, park_id={self.park_id}, "
            f"external_facility_id='{self.external_facility_id}', name='{self.name}')>"
        )
