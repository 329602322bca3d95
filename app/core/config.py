# /app/core/config.py

import os
from dotenv import load_dotenv

# --- ENVIRONMENT ---
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./workbench.db")

# The chat-completions endpoint every slot streams from.
COMPLETION_API_URL = os.getenv(
    "COMPLETION_API_URL",
    "https://ark.cn-beijing.volces.com/api/v3/chat/completions",
)
DEFAULT_MODEL = os.getenv("DEFAULT_MODEL", "doubao-seed-1-6-251015")

# Reads are never timed out; only the TCP connect is bounded.
COMPLETION_CONNECT_TIMEOUT = float(os.getenv("COMPLETION_CONNECT_TIMEOUT", "30"))

SLOT_STAGGER_MS = int(os.getenv("SLOT_STAGGER_MS", "50"))
HISTORY_LIMIT = int(os.getenv("HISTORY_LIMIT", "50"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Environment variables consulted, in order, when no explicit credential is given.
CREDENTIAL_ENV_VARS = ("ARK_API_KEY", "API_KEY")


def resolve_env_credential() -> str:
    """Returns the first non-empty credential from the environment, or ''."""
    for name in CREDENTIAL_ENV_VARS:
        value = os.getenv(name)
        if value:
            return value
    return ""
