# /app/db/models/setting_models.py

from sqlalchemy import Column, String, Text

from ..base_class import Base


class Setting(Base):
    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
