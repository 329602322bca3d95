# /app/db/models/history_models.py

from sqlalchemy import JSON, BigInteger, Boolean, Column, String, Text

from ..base_class import Base


class TestRun(Base):
    """
    One committed batch. Everything but `is_favorite` is written once and
    never updated.
    """
    __tablename__ = "test_runs"  # Override automatic pluralization

    id = Column(String, primary_key=True, index=True)
    timestamp = Column(BigInteger, index=True, nullable=False)  # epoch milliseconds
    system_prompt = Column(Text, nullable=False)
    user_prompt = Column(Text, nullable=False)
    config = Column(JSON, nullable=False)
    results = Column(JSON, nullable=False)
    is_favorite = Column(Boolean, nullable=False, default=False)
