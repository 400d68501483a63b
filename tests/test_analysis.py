"""Tests for the fetch-then-aggregate pipeline."""

import asyncio
from datetime import date
from unittest.mock import patch

import httpx
import pytest

from mochilog.analysis import (
    ERROR_LOAD_FAILED,
    ERROR_NOT_SIGNED_IN,
    AnalysisContext,
    AnalysisView,
    load_analysis,
)
from mochilog.db import init_db, create_habit, delete_habit, log_habit, log_mood
from mochilog.fetchers import LogFetcher, SQLiteLogFetcher, SupabaseLogFetcher
from mochilog.models import DateWindow, Habit, HabitLogEntry, MoodLogEntry

REF = date(2024, 4, 15)
WINDOW = DateWindow(start=date(2024, 1, 15), end=date(2024, 4, 15))


# ═══════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════

class _StaticFetcher(LogFetcher):
    """Test fetcher that returns fixed data and records its calls."""
    name = "static"

    def __init__(self, habits=(), habit_logs=(), mood_logs=()):
        self.habits = list(habits)
        self.habit_logs = list(habit_logs)
        self.mood_logs = list(mood_logs)
        self.calls = []

    async def fetch_habits(self, user_id):
        self.calls.append(("habits", user_id))
        return self.habits

    async def fetch_habit_logs(self, user_id, start, end):
        self.calls.append(("habit_logs", user_id, start, end))
        return self.habit_logs

    async def fetch_mood_logs(self, user_id, start, end):
        self.calls.append(("mood_logs", user_id, start, end))
        return self.mood_logs


class _FailingFetcher(_StaticFetcher):
    """Test fetcher whose mood query always raises."""
    async def fetch_mood_logs(self, user_id, start, end):
        raise ConnectionError("intentional failure")


class _SlowFetcher(_StaticFetcher):
    """Test fetcher whose habit query never finishes in time."""
    async def fetch_habits(self, user_id):
        await asyncio.sleep(5)
        return []


class _FailFastFetcher(_StaticFetcher):
    """Test fetcher whose mood query fails while habit logs are still loading."""
    def __init__(self):
        super().__init__()
        self.finished = []

    async def fetch_habit_logs(self, user_id, start, end):
        await asyncio.sleep(0.2)
        self.finished.append("habit_logs")
        return []

    async def fetch_mood_logs(self, user_id, start, end):
        raise ConnectionError("intentional failure")


RUN = Habit(id="h1", user_id="u1", name="Run")


# ═══════════════════════════════════════════════════════════════════════════
# Pipeline
# ═══════════════════════════════════════════════════════════════════════════

class TestLoadAnalysis:
    def test_success(self):
        fetcher = _StaticFetcher(
            habits=[RUN],
            habit_logs=[
                HabitLogEntry(habit_id="h1", user_id="u1", date=date(2024, 3, 1), completed=True),
                HabitLogEntry(habit_id="gone", user_id="u1", date=date(2024, 3, 2)),
            ],
            mood_logs=[MoodLogEntry(user_id="u1", date=date(2024, 3, 1), mood="good")],
        )
        view = asyncio.run(load_analysis(AnalysisContext(user_id="u1", now=REF), fetcher))

        assert view.ok
        assert view.window == WINDOW
        assert view.habits == [RUN]
        assert view.dropped == 1
        assert len(view.logs) == 1
        assert view.logs[0].mood.mood == "good"
        assert view.logs[0].habits[0].habit is RUN

    def test_fetches_window_for_user(self):
        fetcher = _StaticFetcher()
        asyncio.run(load_analysis(AnalysisContext(user_id="u1", now=REF), fetcher))
        assert sorted(fetcher.calls) == [
            ("habit_logs", "u1", WINDOW.start, WINDOW.end),
            ("habits", "u1"),
            ("mood_logs", "u1", WINDOW.start, WINDOW.end),
        ]

    def test_empty_data(self):
        view = asyncio.run(load_analysis(AnalysisContext(user_id="u1", now=REF), _StaticFetcher()))
        assert view.ok
        assert view.logs == []
        assert view.habits == []

    def test_no_user(self):
        fetcher = _StaticFetcher()
        view = asyncio.run(load_analysis(AnalysisContext(user_id=""), fetcher))
        assert view.error == ERROR_NOT_SIGNED_IN
        assert fetcher.calls == []

    def test_fetch_failure_skips_aggregation(self):
        with patch("mochilog.analysis.aggregate_with_stats") as agg:
            view = asyncio.run(load_analysis(AnalysisContext(user_id="u1", now=REF),
                                             _FailingFetcher(habits=[RUN])))
        agg.assert_not_called()
        assert not view.ok
        assert view.error == ERROR_LOAD_FAILED
        assert view.logs == []
        assert view.habits == []
        assert view.window == WINDOW

    def test_timeout(self):
        view = asyncio.run(load_analysis(AnalysisContext(user_id="u1", now=REF),
                                         _SlowFetcher(), timeout=0.05))
        assert view.error == ERROR_LOAD_FAILED

    def test_failure_cancels_pending_fetches(self):
        fetcher = _FailFastFetcher()

        async def scenario():
            view = await load_analysis(AnalysisContext(user_id="u1", now=REF), fetcher)
            await asyncio.sleep(0.3)
            return view

        view = asyncio.run(scenario())
        assert view.error == ERROR_LOAD_FAILED
        assert fetcher.finished == []

    def test_bad_date_row_fails_load(self):
        def handler(request):
            table = request.url.path.rsplit("/", 1)[-1]
            if table == "mood_logs":
                return httpx.Response(200, json=[
                    {"user_id": "u1", "date": "garbage", "mood": "good"},
                ])
            return httpx.Response(200, json=[])

        fetcher = SupabaseLogFetcher("https://x.supabase.co", "k",
                                     transport=httpx.MockTransport(handler))
        with patch("mochilog.analysis.aggregate_with_stats") as agg:
            view = asyncio.run(load_analysis(AnalysisContext(user_id="u1", now=REF), fetcher))
        agg.assert_not_called()
        assert view.error == ERROR_LOAD_FAILED

    def test_timestamp_dates_join_by_day(self):
        def handler(request):
            table = request.url.path.rsplit("/", 1)[-1]
            rows = {
                "habits": [{"id": "h1", "user_id": "u1", "name": "Run"}],
                "habit_logs": [{"habit_id": "h1", "user_id": "u1",
                                "date": "2024-03-01T07:30:00+09:00", "completed": True}],
                "mood_logs": [{"user_id": "u1", "date": "2024-03-01", "mood": "good"}],
            }
            return httpx.Response(200, json=rows[table])

        fetcher = SupabaseLogFetcher("https://x.supabase.co", "k",
                                     transport=httpx.MockTransport(handler))
        view = asyncio.run(load_analysis(AnalysisContext(user_id="u1", now=REF), fetcher))
        assert view.ok
        assert len(view.logs) == 1
        assert view.logs[0].mood.mood == "good"
        assert view.logs[0].habits[0].habit.name == "Run"

    def test_rows_outside_window_ignored(self):
        fetcher = _StaticFetcher(
            habits=[RUN],
            habit_logs=[
                HabitLogEntry(habit_id="h1", user_id="u1", date=WINDOW.start, completed=True),
                HabitLogEntry(habit_id="h1", user_id="u1", date=date(2024, 4, 16)),
            ],
            mood_logs=[
                MoodLogEntry(user_id="u1", date=date(2024, 1, 14), mood="early"),
                MoodLogEntry(user_id="u1", date=WINDOW.end, mood="today"),
            ],
        )
        view = asyncio.run(load_analysis(AnalysisContext(user_id="u1", now=REF), fetcher))
        assert [d.date for d in view.logs] == [WINDOW.end, WINDOW.start]
        assert view.logs[0].mood.mood == "today"
        assert view.dropped == 0

    def test_view_defaults(self):
        view = AnalysisView()
        assert view.ok
        assert view.logs == []


class TestEndToEndSQLite:
    @pytest.fixture(autouse=True)
    def fresh_db(self, tmp_path, monkeypatch):
        import mochilog.db as db_module
        monkeypatch.setattr(db_module, "DB_PATH", tmp_path / "test.db")
        init_db()

    def test_window_and_dangling_logs(self):
        run = create_habit("u1", "Run")
        read = create_habit("u1", "Read")
        log_mood("u1", "2024-04-10", "tired")
        log_mood("u1", "2024-04-10", "fine")
        log_habit("u1", run, "2024-04-10", count=1)
        log_habit("u1", read, "2024-04-11", completed=False, notes="skipped")
        log_habit("u1", run, "2023-12-01")        # outside window
        log_mood("u2", "2024-04-10", "other user")
        delete_habit(read)

        view = asyncio.run(load_analysis(AnalysisContext(user_id="u1", now=REF),
                                         SQLiteLogFetcher()))

        assert view.ok
        assert [h.name for h in view.habits] == ["Run"]
        assert view.dropped == 1
        assert [d.date for d in view.logs] == [date(2024, 4, 10)]
        day = view.logs[0]
        assert day.mood.mood == "fine"
        assert [(e.habit.name, e.completed, e.count, e.notes) for e in day.habits] == [
            ("Run", True, 1, ""),
        ]
