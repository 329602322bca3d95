# /app/db/models/prompt_models.py

from sqlalchemy import BigInteger, Boolean, Column, String, Text

from ..base_class import Base


class SavedPrompt(Base):
    """A reusable prompt body. `prompt_type` is either 'system' or 'user'."""
    __tablename__ = "saved_prompts"  # Override automatic pluralization

    id = Column(String, primary_key=True, index=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    prompt_type = Column(String, index=True, nullable=False)
    created_at = Column(BigInteger, nullable=False)  # epoch milliseconds
    is_favorite = Column(Boolean, nullable=False, default=False)
