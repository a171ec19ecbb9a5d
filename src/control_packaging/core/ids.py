"""Canonical ID and timestamp factories.

Scan IDs are epoch milliseconds.  The store bumps a new ID past the last
one it handed out, so IDs stay unique even when two scans land in the
same millisecond.

All timestamps are ``datetime`` with ``tzinfo`` set, never naive.
"""

from __future__ import annotations

import uuid
from datetime import datetime


def new_trace_id() -> str:
    """Generate a new UUID v4 string for log correlation."""
    return str(uuid.uuid4())


def epoch_ms(ts: datetime) -> int:
    """Milliseconds since the Unix epoch for an aware datetime."""
    return int(ts.timestamp() * 1000)


def next_scan_id(ts: datetime, last_id: int | None) -> int:
    """Return a scan ID derived from *ts* that is greater than *last_id*."""
    candidate = epoch_ms(ts)
    if last_id is not None and candidate <= last_id:
        return last_id + 1
    return candidate
