"""Log fetchers — where raw habits, habit logs and mood logs come from.

Every fetcher implements the same three async calls and returns model
objects. No matching rows means an empty list, never an error. Transport
and storage errors propagate; the analysis pipeline decides what to show.

Two backends:
  - SQLiteLogFetcher   — the local database in mochilog.db
  - SupabaseLogFetcher — Supabase tables via the PostgREST HTTP API
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import date

import httpx

from mochilog import db
from mochilog.config import (
    FETCH_TIMEOUT_SECONDS,
    LOG_SOURCE,
    SUPABASE_ACCESS_TOKEN,
    SUPABASE_ANON_KEY,
    SUPABASE_URL,
)
from mochilog.models import Habit, HabitLogEntry, MoodLogEntry

log = logging.getLogger(__name__)


class LogFetcher(ABC):
    """Base class for raw log sources."""

    name = "base"

    @abstractmethod
    async def fetch_habits(self, user_id: str) -> list[Habit]:
        ...

    @abstractmethod
    async def fetch_habit_logs(self, user_id: str, start: date, end: date) -> list[HabitLogEntry]:
        """Habit logs with start <= date <= end."""
        ...

    @abstractmethod
    async def fetch_mood_logs(self, user_id: str, start: date, end: date) -> list[MoodLogEntry]:
        """Mood logs with start <= date <= end."""
        ...


# ═══════════════════════════════════════════════════════════════════════════
# SQLite
# ═══════════════════════════════════════════════════════════════════════════

class SQLiteLogFetcher(LogFetcher):
    """Reads from the local database. Queries run in a worker thread."""

    name = "sqlite"

    async def fetch_habits(self, user_id: str) -> list[Habit]:
        rows = await asyncio.to_thread(db.get_habits, user_id)
        return [Habit.from_row(r) for r in rows]

    async def fetch_habit_logs(self, user_id: str, start: date, end: date) -> list[HabitLogEntry]:
        rows = await asyncio.to_thread(db.get_habit_logs, user_id, start, end)
        return [HabitLogEntry.from_row(r) for r in rows]

    async def fetch_mood_logs(self, user_id: str, start: date, end: date) -> list[MoodLogEntry]:
        rows = await asyncio.to_thread(db.get_mood_logs, user_id, start, end)
        return [MoodLogEntry.from_row(r) for r in rows]


# ═══════════════════════════════════════════════════════════════════════════
# Supabase (PostgREST)
# ═══════════════════════════════════════════════════════════════════════════

class SupabaseLogFetcher(LogFetcher):
    """Reads the habits / habit_logs / mood_logs tables over REST.

    Row-level security on the server decides what the token may see; the
    user_id filter is still sent so service keys get the same rows.
    """

    name = "supabase"

    def __init__(self, base_url: str, api_key: str, access_token: str = "",
                 timeout: float = FETCH_TIMEOUT_SECONDS,
                 transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
            "Accept": "application/json",
        }

    async def _select(self, table: str, params: list[tuple[str, str]]) -> list[dict]:
        url = f"{self.base_url}/rest/v1/{table}"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.get(url, params=[("select", "*"), *params], headers=self._headers())
            resp.raise_for_status()
            rows = resp.json()
        log.debug("Supabase %s: %d rows", table, len(rows or []))
        return rows or []

    @staticmethod
    def _range_params(user_id: str, start: date, end: date) -> list[tuple[str, str]]:
        return [
            ("user_id", f"eq.{user_id}"),
            ("date", f"gte.{start.isoformat()}"),
            ("date", f"lte.{end.isoformat()}"),
        ]

    async def fetch_habits(self, user_id: str) -> list[Habit]:
        rows = await self._select("habits", [("user_id", f"eq.{user_id}")])
        return [Habit.from_row(r) for r in rows]

    async def fetch_habit_logs(self, user_id: str, start: date, end: date) -> list[HabitLogEntry]:
        rows = await self._select("habit_logs", self._range_params(user_id, start, end))
        return [HabitLogEntry.from_row(r) for r in rows]

    async def fetch_mood_logs(self, user_id: str, start: date, end: date) -> list[MoodLogEntry]:
        rows = await self._select("mood_logs", self._range_params(user_id, start, end))
        return [MoodLogEntry.from_row(r) for r in rows]


def make_fetcher(source: str = LOG_SOURCE) -> LogFetcher:
    """Build the fetcher named by `source` ("sqlite" or "supabase")."""
    source = (source or "").lower()
    if source == "sqlite":
        return SQLiteLogFetcher()
    if source == "supabase":
        if not (SUPABASE_URL and SUPABASE_ANON_KEY):
            log.warning("LOG_SOURCE=supabase but SUPABASE_URL / SUPABASE_ANON_KEY not set")
        return SupabaseLogFetcher(SUPABASE_URL, SUPABASE_ANON_KEY, SUPABASE_ACCESS_TOKEN)
    raise ValueError(f"Unknown log source: {source!r}")
