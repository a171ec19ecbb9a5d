"""Dashboard counts over calendar windows.

Both windows are half-open ``[start, end)`` in the calendar of ``now``:

* day:   local midnight of ``now`` to the next local midnight
* month: the first of ``now``'s month to the first of the next month

The windows overlap; one scan can count toward both.  The fold runs over
the full sequence on every call.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta

from control_packaging.domain.scan import DashboardSummary, ScanEvent

Window = tuple[datetime, datetime]


def _midnight(day: date, now: datetime) -> datetime:
    if now.tzinfo is None:
        # system local: each boundary gets the offset in force on its own date
        return datetime.combine(day, time()).astimezone()
    return datetime.combine(day, time(), tzinfo=now.tzinfo)


def calendar_windows(now: datetime) -> tuple[Window, Window]:
    """Return the ``(day, month)`` windows containing *now*.

    A naive *now* is system local wall time.  Pass a naive value rather
    than ``now.astimezone()`` when no zone is configured: the fixed offset
    that ``astimezone()`` attaches is wrong on the far side of a
    daylight-saving change.
    """
    today = now.date()
    first = today.replace(day=1)
    if first.month == 12:
        next_first = first.replace(year=first.year + 1, month=1)
    else:
        next_first = first.replace(month=first.month + 1)

    day_window = (_midnight(today, now), _midnight(today + timedelta(days=1), now))
    month_window = (_midnight(first, now), _midnight(next_first, now))
    return day_window, month_window


def summarize(events: Iterable[ScanEvent], now: datetime) -> DashboardSummary:
    """Count scans falling in today's and this month's window."""
    (day_start, day_end), (month_start, month_end) = calendar_windows(now)

    total_today = 0
    total_month = 0
    for event in events:
        ts = event.timestamp
        if day_start <= ts < day_end:
            total_today += 1
        if month_start <= ts < month_end:
            total_month += 1

    return DashboardSummary(total_today=total_today, total_month=total_month)
