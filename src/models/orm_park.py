"""
SQLAlchemy ORM Model: Park
Represents a state park tracked on ReserveCalifornia.
"""

import json
from sqlalchemy import String, Boolean, Text, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from models.base import Base
from datetime import datetime
from typing import List, Optional


class InvalidFacilityFilterError(ValueError):
    """Stored facility allow-list is not a JSON list."""
    pass


class Park(Base):
    __tablename__ = "parks"
    __table_args__ = {'extend_existing': True}

    # Primary Key
    park_id: Mapped[int] = mapped_column(primary_key=True)

    # Basic Information
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    park_number: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        unique=True,
        comment="External PlaceId on ReserveCalifornia"
    )

    # Park-level facility allow-list (JSON array of external facility ids)
    facility_filter: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="JSON list of external facility ids to include; NULL = all"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="FALSE to exclude the park from sync"
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
    facilities: Mapped[List["Facility"]] = relationship(
        "Facility",
        back_populates="park",
        lazy="select",
        cascade="all, delete-orphan"
    )
    sites: Mapped[List["Site"]] = relationship(
        "Site",
        back_populates="park",
        lazy="select"
    )

    @property
    def allowed_facility_ids(self) -> Optional[List[str]]:
        """
        Parse the park-level facility allow-list.

        Returns:
            List of external facility ids, or None when the park has no filter

        Raises:
            InvalidFacilityFilterError: If the stored value is not a JSON list
        """
        if not self.facility_filter:
            return None
        try:
            parsed = json.loads(self.facility_filter)
        except (TypeError, ValueError) as e:
            raise InvalidFacilityFilterError(
                f"Park {self.park_id} facility_filter is not valid JSON: {self.facility_filter!r}"
            ) from e
        if not isinstance(parsed, list):
            raise InvalidFacilityFilterError(
                f"Park {self.park_id} facility_filter must be a JSON list: {self.facility_filter!r}"
            )
        return [str(facility_id) for facility_id in parsed]

    def __repr__(self) -> str:
        return f"<Park(park_id={self.park_id}, name='{self.name}', park_number='{self.park_number}')>"
