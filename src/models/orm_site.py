"""
SQLAlchemy ORM Model: Site
A single bookable campsite. Identity is (park_id, facility_id, site_number);
the same site number can repeat across facilities of one park.
"""

from sqlalchemy import String, Boolean, DateTime, Integer, ForeignKey, Index, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from models.base import Base
from datetime import datetime
from typing import List, Optional


class Site(Base):
    __tablename__ = "sites"
    __table_args__ = (
        Index('idx_site_identity', 'park_id', 'facility_id', 'site_number'),
        {'extend_existing': True}
    )

    # Primary Key
    site_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Foreign Keys
    park_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey('parks.park_id', ondelete='CASCADE'),
        nullable=False
    )
    facility_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey('facilities.facility_id', ondelete='SET NULL'),
        nullable=True,
        comment="NULL until the facility has been resolved"
    )

    # Remote identity and metadata
    site_number: Mapped[str] = mapped_column(String(50), nullable=False, comment="Unit ShortName")
    site_name: Mapped[Optional[str]] = mapped_column(String(255))
    site_type: Mapped[Optional[str]] = mapped_column(String(100))
    unit_type_id: Mapped[Optional[int]] = mapped_column(Integer, comment="External UnitTypeId")
    is_ada: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    vehicle_length: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    external_site_id: Mapped[Optional[str]] = mapped_column(String(50), comment="External UnitId")

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
    park: Mapped["Park"] = relationship("Park", back_populates="sites", lazy="select")
    facility: Mapped[Optional["Facility"]] = relationship("Facility", back_populates="sites", lazy="select")
    availability: Mapped[List["SiteAvailability"]] = relationship(
        "SiteAvailability",
        back_populates="site",
        lazy="select",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return (
            f"<Site(site_id={self.site_id}, park_id={self.park_id}, "
            f"facility_id={self.facility_id}, site_number='{self.site_number}')>"
        )
