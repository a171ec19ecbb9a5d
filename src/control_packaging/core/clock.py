"""Clock abstraction.

WallClock: real wall-clock time
FixedClock: settable time for tests and replays

Services never call datetime.now() directly; they use the injected clock.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class IClock(Protocol):
    """Clock interface used by all time-dependent code."""

    def now(self) -> datetime:
        """Current time as a timezone-aware datetime."""
        ...


class WallClock:
    """Real wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self._time = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        if self._time.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")

    def now(self) -> datetime:
        return self._time

    def set_time(self, t: datetime) -> None:
        if t.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")
        self._time = t

    def advance(self, **kwargs: float) -> None:
        """Advance time by ``timedelta(**kwargs)``."""
        self._time = self._time + timedelta(**kwargs)
