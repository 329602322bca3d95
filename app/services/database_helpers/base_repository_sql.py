# /app/services/database_helpers/base_repository_sql.py

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import PersistenceError


class BaseRepositorySQL:
    """Shared session handling: every store failure surfaces as PersistenceError."""

    def __init__(self, db_session: Session):
        self.db = db_session

    @contextmanager
    def _translate_errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to {action}: {e}") from e
