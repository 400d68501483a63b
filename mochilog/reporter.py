"""Reporter — turns an AnalysisView into JSON-ready dicts and console output.

The aggregator keeps first-seen order; anything here that needs calendar
order sorts explicitly.
"""

import json
import logging
from datetime import datetime, timezone, timedelta

from mochilog.analysis import AnalysisView
from mochilog.config import TIMEZONE_OFFSET_HOURS
from mochilog.models import DailyAggregate, Habit, MoodLogEntry

log = logging.getLogger(__name__)

TZ = timezone(timedelta(hours=TIMEZONE_OFFSET_HOURS))


def sort_chronologically(logs: list[DailyAggregate]) -> list[DailyAggregate]:
    return sorted(logs, key=lambda d: d.date)


def habit_to_dict(habit: Habit) -> dict:
    return {
        "id": habit.id,
        "name": habit.name,
        "description": habit.description,
    }


def mood_to_dict(mood: MoodLogEntry | None) -> dict | None:
    if mood is None:
        return None
    return {
        "mood": mood.mood,
        "score": mood.score,
        "notes": mood.notes or "",
    }


def daily_log_to_dict(day: DailyAggregate) -> dict:
    return {
        "date": day.date.isoformat(),
        "mood": mood_to_dict(day.mood),
        "habits": [
            {
                "habit": habit_to_dict(entry.habit),
                "completed": entry.completed,
                "count": entry.count,
                "notes": entry.notes,
            }
            for entry in day.habits
        ],
    }


def generate_json_output(view: AnalysisView, sort: bool = False) -> dict:
    """Build the full JSON document for a view.

    With sort=True the daily logs are in calendar order, otherwise in the
    order the aggregator produced them.
    """
    logs = sort_chronologically(view.logs) if sort else view.logs
    return {
        "metadata": {
            "generated_at": datetime.now(TZ).isoformat(),
            "window": {
                "start": view.window.start_str,
                "end": view.window.end_str,
            } if view.window else None,
            "total_days": len(view.logs),
            "dropped_habit_logs": view.dropped,
            "error": view.error or None,
        },
        "habits": [habit_to_dict(h) for h in view.habits],
        "daily_logs": [daily_log_to_dict(d) for d in logs],
    }


def save_json_output(output: dict, filepath: str = "daily_logs.json") -> None:
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(output, f, indent=2, ensure_ascii=False)
    log.info("JSON output saved to %s", filepath)


def format_summary(view: AnalysisView) -> str:
    """Human-readable per-day summary, oldest day first."""
    if view.error:
        return f"Error: {view.error}"
    if not view.logs:
        return "No logs in this window."

    lines = []
    for day in sort_chronologically(view.logs):
        mood = f"mood: {day.mood.mood}" if day.mood else "mood: -"
        done = sum(1 for e in day.habits if e.completed)
        lines.append(f"{day.date.isoformat()}  {mood}  habits: {done}/{len(day.habits)} done")
        for e in day.habits:
            mark = "x" if e.completed else " "
            extra = f" ×{e.count}" if e.count else ""
            note = f" — {e.notes}" if e.notes else ""
            lines.append(f"    [{mark}] {e.habit.name}{extra}{note}")
    return "\n".join(lines)
