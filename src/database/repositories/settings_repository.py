"""
Campsite Availability Sync - Settings Repository
Key/value settings editable from the admin side.
"""

from typing import Optional
from sqlalchemy.orm import Session

from models.orm_setting import Setting

USER_AGENT_KEY = 'rc_user_agent'


class SettingsRepository:
    """Repository for the settings table."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        setting = self.session.get(Setting, key)
        if setting is None or setting.setting_value is None:
            return default
        return setting.setting_value

    def set(self, key: str, value: Optional[str]) -> None:
        """
        Insert or replace a setting and commit.

        Args:
            key: Setting key
            value: Setting value (None clears it)
        """
        setting = self.session.get(Setting, key)
        if setting is None:
            self.session.add(Setting(setting_key=key, setting_value=value))
        else:
            setting.setting_value = value
        self.session.commit()

    def get_user_agent(self) -> Optional[str]:
        """
        Get the outbound User-Agent override.

        Returns:
            The configured override, or None when unset or blank
        """
        value = self.get(USER_AGENT_KEY)
        if value is None:
            return None
        value = value.strip()
        return value or None
