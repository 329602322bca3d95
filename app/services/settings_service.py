# /app/services/settings_service.py

from typing import Optional

from .database_service import DatabaseService

API_KEY_SETTING = "api_key"


def get_api_key(db: DatabaseService) -> str:
    return db.get_setting(API_KEY_SETTING) or ""


def save_api_key(db: DatabaseService, api_key: str) -> None:
    db.set_setting(API_KEY_SETTING, api_key or "")


def resolve_credential(db: DatabaseService, explicit: Optional[str] = None) -> str:
    """
    The credential for a batch: an explicit value wins, then the stored
    setting. The environment fallback is applied later by the completion client.
    """
    if explicit:
        return explicit
    return get_api_key(db)
