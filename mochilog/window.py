"""Trailing date window — the range of days the analysis covers."""

from datetime import date, datetime, timezone, timedelta

from dateutil.relativedelta import relativedelta

from mochilog.config import ANALYSIS_WINDOW_MONTHS, TIMEZONE_OFFSET_HOURS
from mochilog.models import DateWindow

TZ = timezone(timedelta(hours=TIMEZONE_OFFSET_HOURS))


def reference_date(reference: datetime | date | None = None) -> date:
    """Calendar date of the reference instant in the user's timezone.

    Naive datetimes are taken as already local.
    """
    if reference is None:
        return datetime.now(TZ).date()
    if isinstance(reference, datetime):
        if reference.tzinfo is not None:
            reference = reference.astimezone(TZ)
        return reference.date()
    return reference


def resolve_window(reference: datetime | date | None = None,
                   months: int = ANALYSIS_WINDOW_MONTHS) -> DateWindow:
    """Inclusive window from `months` calendar months before the reference date.

    Month arithmetic clamps to the last valid day, so 2024-05-31 minus
    three months is 2024-02-29.
    """
    end = reference_date(reference)
    return DateWindow(start=end - relativedelta(months=months), end=end)
