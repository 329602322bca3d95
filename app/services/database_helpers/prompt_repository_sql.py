# /app/services/database_helpers/prompt_repository_sql.py

from typing import Dict, List, Optional

from app.db.models.prompt_models import SavedPrompt
from .base_repository_sql import BaseRepositorySQL


class PromptRepositorySQL(BaseRepositorySQL):

    def get_prompts(self, prompt_type: str) -> List[SavedPrompt]:
        """All prompts of one type, newest first."""
        with self._translate_errors("list prompts"):
            return (
                self.db.query(SavedPrompt)
                .filter(SavedPrompt.prompt_type == prompt_type)
                .order_by(SavedPrompt.created_at.desc())
                .all()
            )

    def get_prompt(self, prompt_id: str, prompt_type: str) -> Optional[SavedPrompt]:
        with self._translate_errors("load prompt"):
            return (
                self.db.query(SavedPrompt)
                .filter(SavedPrompt.id == prompt_id, SavedPrompt.prompt_type == prompt_type)
                .first()
            )

    def upsert_prompt(self, record: Dict) -> SavedPrompt:
        """Inserts a new prompt, or updates title/content/favorite of an existing one."""
        with self._translate_errors("save prompt"):
            existing = self.get_prompt(record["id"], record["prompt_type"])
            if existing:
                existing.title = record["title"]
                existing.content = record["content"]
                existing.is_favorite = record.get("is_favorite", False)
                prompt = existing
            else:
                prompt = SavedPrompt(**record)
                self.db.add(prompt)
            self.db.commit()
            self.db.refresh(prompt)
            return prompt

    def update_prompt(self, prompt_id: str, prompt_type: str, update_data: Dict) -> Optional[SavedPrompt]:
        with self._translate_errors("update prompt"):
            prompt = self.get_prompt(prompt_id, prompt_type)
            if prompt is None:
                return None
            for key, value in update_data.items():
                setattr(prompt, key, value)
            self.db.commit()
            self.db.refresh(prompt)
            return prompt

    def delete_prompt(self, prompt_id: str, prompt_type: str) -> bool:
        with self._translate_errors("delete prompt"):
            prompt = self.get_prompt(prompt_id, prompt_type)
            if prompt:
                self.db.delete(prompt)
                self.db.commit()
                return True
            return False
