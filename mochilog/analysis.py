"""Analysis pipeline — fetch the trailing window of logs, then aggregate.

Usage:
    ctx = AnalysisContext(user_id="...")
    view = await load_analysis(ctx, make_fetcher())
    if view.error: ...           # show a generic failure state
    else: render(view.logs, view.habits)

The three fetches run concurrently and must all finish before aggregation.
Rows a backend returns outside the window are ignored with a warning.
Any fetch failure or timeout ends in an error view and the aggregator is
never called with partial data. Cancellation propagates to the caller.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime

from mochilog.aggregator import aggregate_with_stats, build_catalog
from mochilog.config import FETCH_TIMEOUT_SECONDS
from mochilog.fetchers import LogFetcher
from mochilog.models import DailyAggregate, DateWindow, Habit
from mochilog.window import resolve_window

log = logging.getLogger(__name__)

ERROR_NOT_SIGNED_IN = "Not signed in"
ERROR_LOAD_FAILED = "Failed to load data"


@dataclass
class AnalysisContext:
    """Per-request input. `now` defaults to the current time."""
    user_id: str
    now: datetime | date | None = None


@dataclass
class AnalysisView:
    """What a consumer renders: daily logs, the habit list, or an error."""
    window: DateWindow | None = None
    logs: list[DailyAggregate] = field(default_factory=list)
    habits: list[Habit] = field(default_factory=list)
    dropped: int = 0
    error: str = ""

    @property
    def ok(self) -> bool:
        return not self.error


def _within(window: DateWindow, entries, kind: str) -> tuple:
    """Snapshot of the entries that fall inside the window."""
    kept = tuple(e for e in entries if window.contains(e.date))
    skipped = len(entries) - len(kept)
    if skipped:
        log.warning("Ignoring %d %s log(s) outside %s..%s",
                    skipped, kind, window.start_str, window.end_str)
    return kept


async def load_analysis(ctx: AnalysisContext, fetcher: LogFetcher,
                        timeout: float = FETCH_TIMEOUT_SECONDS) -> AnalysisView:
    """Fetch habits, habit logs and mood logs for the window and merge them."""
    if not ctx.user_id:
        return AnalysisView(error=ERROR_NOT_SIGNED_IN)

    window = resolve_window(ctx.now)

    tasks = [
        asyncio.create_task(fetcher.fetch_habits(ctx.user_id)),
        asyncio.create_task(fetcher.fetch_habit_logs(ctx.user_id, window.start, window.end)),
        asyncio.create_task(fetcher.fetch_mood_logs(ctx.user_id, window.start, window.end)),
    ]
    try:
        habits, habit_logs, mood_logs = await asyncio.wait_for(
            asyncio.gather(*tasks), timeout=timeout,
        )
    except Exception as e:
        # fetches still pending after a failure
        for task in tasks:
            task.cancel()
        log.error(
            "Data fetch failed for user %s via %s: %s",
            ctx.user_id, fetcher.name, e, exc_info=True,
        )
        return AnalysisView(window=window, error=ERROR_LOAD_FAILED)

    habits = tuple(habits)
    habit_logs = _within(window, habit_logs, "habit")
    mood_logs = _within(window, mood_logs, "mood")
    result = aggregate_with_stats(mood_logs, habit_logs, build_catalog(habits))

    log.info(
        "Analysis %s..%s: %d days, %d habits, %d dropped log(s)",
        window.start_str, window.end_str, len(result.days), len(habits), result.dropped,
    )
    return AnalysisView(
        window=window,
        logs=result.days,
        habits=list(habits),
        dropped=result.dropped,
    )
