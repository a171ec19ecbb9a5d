"""Unit history: every scan of one packaging unit, oldest first."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, tzinfo

from control_packaging.core.errors import MissingFieldError
from control_packaging.domain.scan import HistoryResult, ScanEvent

logger = logging.getLogger(__name__)


def parse_bound(
    value: str | datetime | None,
    tz: tzinfo | None = None,
) -> datetime | None:
    """Parse a history bound into an aware datetime.

    Accepts datetimes and ISO 8601 strings (a trailing ``Z`` included).
    Naive values are read in *tz*, or the system local zone when *tz* is
    ``None``.  Blank or unparsable values return ``None`` so the bound is
    ignored.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.warning("Ignoring unparsable history bound %r", value)
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=tz) if tz is not None else parsed.astimezone()
    return parsed


def history(
    events: Iterable[ScanEvent],
    packaging_id: str | None,
    from_: str | datetime | None = None,
    to: str | datetime | None = None,
    tz: tzinfo | None = None,
) -> HistoryResult:
    """Scans whose ``packaging_id`` equals *packaging_id*, oldest first.

    Both bounds are inclusive.  The sort is stable, so scans sharing a
    timestamp keep their append order.

    Raises:
        MissingFieldError: *packaging_id* is absent or blank.
    """
    if packaging_id is None or not packaging_id.strip():
        raise MissingFieldError("packagingId")

    start = parse_bound(from_, tz)
    end = parse_bound(to, tz)

    rows = [e for e in events if e.packaging_id == packaging_id]
    if start is not None:
        rows = [e for e in rows if e.timestamp >= start]
    if end is not None:
        rows = [e for e in rows if e.timestamp <= end]
    rows.sort(key=lambda e: e.timestamp)

    return HistoryResult(
        packaging_id=packaging_id,
        count=len(rows),
        results=tuple(rows),
    )
