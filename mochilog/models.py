"""Data models — raw log records and the derived per-day aggregate.

Raw records (Habit, HabitLogEntry, MoodLogEntry) are built from fetcher rows
via from_row(). Identifiers are normalised to strings so local integer ids
and remote UUIDs join the same way. Dates are datetime.date values.
"""

from dataclasses import dataclass, field
from datetime import date, datetime


def parse_date(value) -> date:
    """Coerce a row value into a calendar date.

    Accepts date/datetime objects or ISO strings; a full timestamp is
    truncated to its date part. Raises ValueError on anything else.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and len(value) >= 10:
        return date.fromisoformat(value[:10])
    raise ValueError(f"Invalid calendar date: {value!r}")


def _optional_id(value) -> str | None:
    return None if value is None else str(value)


# ═══════════════════════════════════════════════════════════════════════════
# Raw records
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Habit:
    """A user-defined recurring activity."""
    id: str
    user_id: str
    name: str
    description: str = ""
    created_at: str = ""

    @classmethod
    def from_row(cls, row: dict) -> "Habit":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            name=row.get("name") or "",
            description=row.get("description") or "",
            created_at=str(row.get("created_at") or ""),
        )


@dataclass(frozen=True)
class HabitLogEntry:
    """Whether a habit was completed on a given date."""
    habit_id: str
    user_id: str
    date: date
    completed: bool = False
    count: int | None = None
    notes: str | None = None
    id: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> "HabitLogEntry":
        return cls(
            habit_id=str(row["habit_id"]),
            user_id=str(row["user_id"]),
            date=parse_date(row["date"]),
            completed=bool(row.get("completed")),
            count=row.get("count"),
            notes=row.get("notes"),
            id=_optional_id(row.get("id")),
        )


@dataclass(frozen=True)
class MoodLogEntry:
    """The user's mood on a given date."""
    user_id: str
    date: date
    mood: str
    score: int | None = None
    notes: str | None = None
    id: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> "MoodLogEntry":
        return cls(
            user_id=str(row["user_id"]),
            date=parse_date(row["date"]),
            mood=row.get("mood") or "",
            score=row.get("score"),
            notes=row.get("notes"),
            id=_optional_id(row.get("id")),
        )


# ═══════════════════════════════════════════════════════════════════════════
# Derived
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class HabitAggregateEntry:
    """One resolved habit log inside a DailyAggregate."""
    habit: Habit
    completed: bool
    count: int = 0
    notes: str = ""


@dataclass
class DailyAggregate:
    """Merged view of one calendar day: mood plus habit entries."""
    date: date
    mood: MoodLogEntry | None = None
    habits: list[HabitAggregateEntry] = field(default_factory=list)


@dataclass
class AggregateResult:
    """Aggregation output plus the number of habit logs that did not resolve."""
    days: list[DailyAggregate] = field(default_factory=list)
    dropped: int = 0


@dataclass(frozen=True)
class DateWindow:
    """Inclusive [start, end] calendar-date range."""
    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def start_str(self) -> str:
        return self.start.isoformat()

    @property
    def end_str(self) -> str:
        return self.end.isoformat()
