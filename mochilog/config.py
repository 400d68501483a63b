"""Configuration — loads environment variables with sensible defaults.

All tunables live here. Override via .env file or environment variables.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

def _env(key: str, default: str = "") -> str:
    return os.getenv(key, default)

def _env_int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


# ═══════════════════════════════════════════════════════════════════════════
# Owner
# ═══════════════════════════════════════════════════════════════════════════
# Default user for the CLI. Remote backends use UUIDs, the local store
# accepts any string.

OWNER_USER_ID = _env("OWNER_USER_ID")

# ═══════════════════════════════════════════════════════════════════════════
# Log source
# ═══════════════════════════════════════════════════════════════════════════
# LOG_SOURCE tells the pipeline where raw logs come from:
#   "sqlite"   — local database at DB_PATH
#   "supabase" — Supabase / PostgREST tables habits, habit_logs, mood_logs

LOG_SOURCE = _env("LOG_SOURCE", "sqlite")

SUPABASE_URL = _env("SUPABASE_URL")
SUPABASE_ANON_KEY = _env("SUPABASE_ANON_KEY")
SUPABASE_ACCESS_TOKEN = _env("SUPABASE_ACCESS_TOKEN")  # user JWT, falls back to anon key

# ═══════════════════════════════════════════════════════════════════════════
# Analysis
# ═══════════════════════════════════════════════════════════════════════════

ANALYSIS_WINDOW_MONTHS = _env_int("ANALYSIS_WINDOW_MONTHS", 3)
FETCH_TIMEOUT_SECONDS = _env_int("FETCH_TIMEOUT_SECONDS", 15)

# ═══════════════════════════════════════════════════════════════════════════
# Database
# ═══════════════════════════════════════════════════════════════════════════

DB_PATH = Path(_env("MOCHILOG_DB_PATH") or _PROJECT_ROOT / "data" / "mochilog.db")

# ═══════════════════════════════════════════════════════════════════════════
# Logging
# ═══════════════════════════════════════════════════════════════════════════

LOG_LEVEL = _env("LOG_LEVEL", "INFO")

# ═══════════════════════════════════════════════════════════════════════════
# Timezone (default UTC, override for your locale in .env)
# ═══════════════════════════════════════════════════════════════════════════

TIMEZONE_OFFSET_HOURS = _env_int("TIMEZONE_OFFSET_HOURS", 0)
