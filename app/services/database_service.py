# /app/services/database_service.py

from contextlib import contextmanager
from typing import Dict, Generator, Iterator, List, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

# --- Core Database Setup ---
from app.db.database import get_db, session_scope as db_session_scope

# --- Repository Imports ---
from .database_helpers.prompt_repository_sql import PromptRepositorySQL
from .database_helpers.history_repository_sql import HistoryRepositorySQL
from .database_helpers.settings_repository_sql import SettingsRepositorySQL


class DatabaseService:
    def __init__(self, db_session: Session):
        """
        Facade over the SQL repositories. Every method raises PersistenceError
        when the store is unreachable or rejects the operation.
        """
        self.prompt_repo = PromptRepositorySQL(db_session)
        self.history_repo = HistoryRepositorySQL(db_session)
        self.settings_repo = SettingsRepositorySQL(db_session)

    # --- SAVED PROMPT METHODS (DELEGATED) ---
    def get_prompts(self, prompt_type: str) -> List: return self.prompt_repo.get_prompts(prompt_type)
    def get_prompt(self, prompt_id: str, prompt_type: str): return self.prompt_repo.get_prompt(prompt_id, prompt_type)
    def upsert_prompt(self, prompt_record: Dict): return self.prompt_repo.upsert_prompt(prompt_record)
    def update_prompt(self, prompt_id: str, prompt_type: str, update_data: Dict): return self.prompt_repo.update_prompt(prompt_id, prompt_type, update_data)
    def delete_prompt(self, prompt_id: str, prompt_type: str) -> bool: return self.prompt_repo.delete_prompt(prompt_id, prompt_type)

    # --- HISTORY METHODS (DELEGATED) ---
    def get_history_records(self, limit: int) -> List: return self.history_repo.get_test_runs(limit)
    def get_history_record(self, run_id: str): return self.history_repo.get_test_run(run_id)
    def add_history_record(self, run_record: Dict): return self.history_repo.add_test_run(run_record)
    def toggle_history_favorite(self, run_id: str): return self.history_repo.toggle_favorite(run_id)
    def delete_history_record(self, run_id: str) -> bool: return self.history_repo.delete_test_run(run_id)

    # --- SETTINGS METHODS (DELEGATED) ---
    def get_setting(self, key: str) -> Optional[str]: return self.settings_repo.get_setting(key)
    def set_setting(self, key: str, value: str) -> None: self.settings_repo.set_setting(key, value)


def get_db_service(db: Session = Depends(get_db)) -> Generator[DatabaseService, None, None]:
    """FastAPI dependency that provides a request-scoped DatabaseService."""
    yield DatabaseService(db_session=db)


@contextmanager
def database_scope() -> Iterator[DatabaseService]:
    """A DatabaseService bound to its own session, for work outside a request."""
    with db_session_scope() as db:
        yield DatabaseService(db_session=db)
