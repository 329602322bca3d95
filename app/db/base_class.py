# /app/db/base_class.py

from sqlalchemy.orm import declarative_base, declared_attr


class _TableNameMixin:
    # Tables are named after their model, pluralized ("Setting" -> "settings").
    # Models whose natural name reads badly override __tablename__.
    @declared_attr
    def __tablename__(cls) -> str:
        return cls.__name__.lower() + "s"


Base = declarative_base(cls=_TableNameMixin)
