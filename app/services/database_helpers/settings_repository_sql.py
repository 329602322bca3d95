# /app/services/database_helpers/settings_repository_sql.py

from typing import Optional

from app.db.models.setting_models import Setting
from .base_repository_sql import BaseRepositorySQL


class SettingsRepositorySQL(BaseRepositorySQL):

    def get_setting(self, key: str) -> Optional[str]:
        with self._translate_errors("read setting"):
            setting = self.db.get(Setting, key)
            return setting.value if setting else None

    def set_setting(self, key: str, value: str) -> None:
        with self._translate_errors("write setting"):
            self.db.merge(Setting(key=key, value=value))
            self.db.commit()
