"""
SQLAlchemy ORM Model: Setting
Admin-editable key/value settings (e.g. the outbound user agent override).
"""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column
from models.base import Base
from typing import Optional


class Setting(Base):
    __tablename__ = "settings"
    __table_args__ = {'extend_existing': True}

    setting_key: Mapped[str] = mapped_column(String(100), primary_key=True)
    setting_value: Mapped[Optional[str]] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<Setting(key='{self.setting_key}')>"
