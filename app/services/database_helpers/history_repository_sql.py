# /app/services/database_helpers/history_repository_sql.py

from typing import Dict, List, Optional

from app.db.models.history_models import TestRun
from .base_repository_sql import BaseRepositorySQL


class HistoryRepositorySQL(BaseRepositorySQL):

    def get_test_runs(self, limit: int) -> List[TestRun]:
        """Retrieves the most recent test runs, newest first."""
        with self._translate_errors("list history"):
            return self.db.query(TestRun).order_by(TestRun.timestamp.desc()).limit(limit).all()

    def get_test_run(self, run_id: str) -> Optional[TestRun]:
        with self._translate_errors("load history record"):
            return self.db.query(TestRun).filter(TestRun.id == run_id).first()

    def add_test_run(self, record: Dict) -> TestRun:
        with self._translate_errors("save history record"):
            new_run = TestRun(**record)
            self.db.add(new_run)
            self.db.commit()
            self.db.refresh(new_run)
            return new_run

    def toggle_favorite(self, run_id: str) -> Optional[TestRun]:
        with self._translate_errors("update history record"):
            run = self.get_test_run(run_id)
            if run is None:
                return None
            run.is_favorite = not run.is_favorite
            self.db.commit()
            return run

    def delete_test_run(self, run_id: str) -> bool:
        with self._translate_errors("delete history record"):
            run = self.get_test_run(run_id)
            if run:
                self.db.delete(run)
                self.db.commit()
                return True
            return False
