# /app/db/base.py

# Central registry for all SQLAlchemy models. Importing them here ensures the
# Base class knows about every table when `init_db` or Alembic scans it.

from .base_class import Base

from .models.prompt_models import SavedPrompt
from .models.history_models import TestRun
from .models.setting_models import Setting
