"""SQLite database layer — local storage for habits, habit logs and mood logs.

Lightweight schema. Tables are created automatically on first run.
Dates are stored as YYYY-MM-DD text so range filters compare correctly.
"""

import sqlite3
import logging
from datetime import date, datetime, timezone, timedelta

from mochilog.config import DB_PATH, TIMEZONE_OFFSET_HOURS

logger = logging.getLogger(__name__)

TZ = timezone(timedelta(hours=TIMEZONE_OFFSET_HOURS))


def _connect() -> sqlite3.Connection:
    """Return a connection with row_factory set."""
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(DB_PATH))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    return conn


def init_db() -> None:
    """Create tables if they don't exist."""
    conn = _connect()
    conn.executescript("""
        -- Habits (defined by user)
        CREATE TABLE IF NOT EXISTS habits (
            id          INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id     TEXT    NOT NULL,
            name        TEXT    NOT NULL,
            description TEXT    NOT NULL DEFAULT '',
            created_at  TEXT    NOT NULL
        );
        CREATE UNIQUE INDEX IF NOT EXISTS idx_habits_user_name
            ON habits(user_id, name);

        -- Habit log entries (one per habit per day in well-formed data).
        -- No foreign key: logs outlive deleted habits.
        CREATE TABLE IF NOT EXISTS habit_logs (
            id         INTEGER PRIMARY KEY AUTOINCREMENT,
            habit_id   INTEGER NOT NULL,
            user_id    TEXT    NOT NULL,
            date       TEXT    NOT NULL,
            completed  INTEGER NOT NULL DEFAULT 0,
            count      INTEGER,
            notes      TEXT,
            created_at TEXT    NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_habit_logs_user_date
            ON habit_logs(user_id, date);

        -- Mood log entries
        CREATE TABLE IF NOT EXISTS mood_logs (
            id         INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id    TEXT    NOT NULL,
            date       TEXT    NOT NULL,
            mood       TEXT    NOT NULL,
            score      INTEGER,
            notes      TEXT,
            created_at TEXT    NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_mood_logs_user_date
            ON mood_logs(user_id, date);
    """)
    conn.close()
    logger.info("Database initialized at %s", DB_PATH)


def _date_str(d: date | str) -> str:
    return d.isoformat() if isinstance(d, date) else d


# ═══════════════════════════════════════════════════════════════════════════
# Habits
# ═══════════════════════════════════════════════════════════════════════════

def create_habit(user_id: str, name: str, description: str = "") -> int:
    """Create a new habit. Returns habit id (existing id if the name is taken)."""
    now = datetime.now(TZ).isoformat()
    conn = _connect()
    conn.execute(
        "INSERT OR IGNORE INTO habits (user_id, name, description, created_at) VALUES (?, ?, ?, ?)",
        (user_id, name, description, now),
    )
    conn.commit()
    row = conn.execute(
        "SELECT id FROM habits WHERE user_id = ? AND name = ?",
        (user_id, name),
    ).fetchone()
    conn.close()
    return row["id"]


def delete_habit(habit_id: int) -> None:
    """Delete a habit definition. Its logs stay and no longer resolve."""
    conn = _connect()
    conn.execute("DELETE FROM habits WHERE id = ?", (habit_id,))
    conn.commit()
    conn.close()


def get_habits(user_id: str) -> list[dict]:
    conn = _connect()
    rows = conn.execute(
        "SELECT id, user_id, name, description, created_at FROM habits WHERE user_id = ? ORDER BY id",
        (user_id,),
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]


# ═══════════════════════════════════════════════════════════════════════════
# Habit Logs
# ═══════════════════════════════════════════════════════════════════════════

def log_habit(user_id: str, habit_id: int, day: date | str, completed: bool = True,
              count: int | None = None, notes: str | None = None) -> int:
    """Record a habit log for a day. Returns log id."""
    now = datetime.now(TZ).isoformat()
    conn = _connect()
    cur = conn.execute(
        """INSERT INTO habit_logs (habit_id, user_id, date, completed, count, notes, created_at)
           VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (habit_id, user_id, _date_str(day), int(completed), count, notes, now),
    )
    conn.commit()
    lid = cur.lastrowid
    conn.close()
    return lid


def get_habit_logs(user_id: str, start: date | str, end: date | str) -> list[dict]:
    """Habit logs with start <= date <= end, in insertion order."""
    conn = _connect()
    rows = conn.execute(
        """SELECT id, habit_id, user_id, date, completed, count, notes FROM habit_logs
           WHERE user_id = ? AND date >= ? AND date <= ?
           ORDER BY id""",
        (user_id, _date_str(start), _date_str(end)),
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]


# ═══════════════════════════════════════════════════════════════════════════
# Mood Logs
# ═══════════════════════════════════════════════════════════════════════════

def log_mood(user_id: str, day: date | str, mood: str,
             score: int | None = None, notes: str | None = None) -> int:
    """Record a mood entry for a day. Returns log id."""
    now = datetime.now(TZ).isoformat()
    conn = _connect()
    cur = conn.execute(
        "INSERT INTO mood_logs (user_id, date, mood, score, notes, created_at) VALUES (?, ?, ?, ?, ?, ?)",
        (user_id, _date_str(day), mood, score, notes, now),
    )
    conn.commit()
    lid = cur.lastrowid
    conn.close()
    return lid


def get_mood_logs(user_id: str, start: date | str, end: date | str) -> list[dict]:
    """Mood logs with start <= date <= end, in insertion order."""
    conn = _connect()
    rows = conn.execute(
        """SELECT id, user_id, date, mood, score, notes FROM mood_logs
           WHERE user_id = ? AND date >= ? AND date <= ?
           ORDER BY id""",
        (user_id, _date_str(start), _date_str(end)),
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]
