"""Daily log aggregation — merges mood and habit logs into per-day records.

Two passes over the raw logs, mood first:
  1. each mood entry claims its date and overwrites any earlier mood there
  2. each habit entry whose habit resolves in the catalog is appended to its
     date; unresolved entries are skipped before the date is touched

Output order is first-seen date order across both passes. Callers that need
chronological order sort it themselves (see reporter.sort_chronologically).
"""

import logging
from collections.abc import Iterable, Mapping

from mochilog.models import (
    AggregateResult,
    DailyAggregate,
    Habit,
    HabitAggregateEntry,
    HabitLogEntry,
    MoodLogEntry,
)

log = logging.getLogger(__name__)


def build_catalog(habits: Iterable[Habit] | None) -> dict[str, Habit]:
    """Index habits by id. Later duplicates win."""
    return {h.id: h for h in habits or ()}


def aggregate_with_stats(
    mood_entries: Iterable[MoodLogEntry] | None,
    habit_entries: Iterable[HabitLogEntry] | None,
    catalog: Mapping[str, Habit] | None,
) -> AggregateResult:
    """Merge both streams and report how many habit logs were dropped."""
    catalog = catalog or {}
    daily: dict = {}
    dropped = 0

    for mood in mood_entries or ():
        day = daily.get(mood.date)
        if day is None:
            day = daily[mood.date] = DailyAggregate(date=mood.date)
        day.mood = mood

    for entry in habit_entries or ():
        habit = catalog.get(entry.habit_id)
        if habit is None:
            dropped += 1
            continue

        day = daily.get(entry.date)
        if day is None:
            day = daily[entry.date] = DailyAggregate(date=entry.date)
        day.habits.append(HabitAggregateEntry(
            habit=habit,
            completed=entry.completed,
            count=entry.count or 0,
            notes=entry.notes or "",
        ))

    if dropped:
        log.debug("Dropped %d habit log(s) with unknown habit ids", dropped)

    return AggregateResult(days=list(daily.values()), dropped=dropped)


def aggregate(
    mood_entries: Iterable[MoodLogEntry] | None,
    habit_entries: Iterable[HabitLogEntry] | None,
    catalog: Mapping[str, Habit] | None,
) -> list[DailyAggregate]:
    """Merge mood and habit logs into DailyAggregate records.

    Never raises for data issues and never returns None; empty inputs give [].
    """
    return aggregate_with_stats(mood_entries, habit_entries, catalog).days
