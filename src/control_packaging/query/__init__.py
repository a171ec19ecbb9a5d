"""Read-side queries over the scan sequence.  Pure functions, no I/O."""

from control_packaging.query.history import history, parse_bound
from control_packaging.query.summary import calendar_windows, summarize

__all__ = ["calendar_windows", "history", "parse_bound", "summarize"]
