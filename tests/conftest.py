"""Shared fixtures for the control-packaging test suite."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from control_packaging.core.clock import FixedClock
from control_packaging.infrastructure.event_store import (
    InMemoryScanStore,
    JsonFileScanStore,
)

REFERENCE_NOW = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Clock / stores
# ---------------------------------------------------------------------------

@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(REFERENCE_NOW)


@pytest.fixture
def memory_store(clock: FixedClock) -> InMemoryScanStore:
    return InMemoryScanStore(clock)


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "data.json"


@pytest.fixture
def file_store(store_path: Path, clock: FixedClock) -> JsonFileScanStore:
    return JsonFileScanStore(store_path, clock, retry_backoff_seconds=0.0)


@pytest.fixture
def new_york_local(monkeypatch: pytest.MonkeyPatch):
    """Make America/New_York the process-local zone for one test."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is unavailable on this platform")
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


@pytest.fixture
def scan_payload() -> dict[str, Any]:
    """A complete, valid scan submission."""
    return {
        "station": "Warehouse",
        "packagingId": "PKG-0001",
        "partNo": "12345678901",
        "action": "IN",
        "supplier": "SUP-A",
        "remarks": "first arrival",
        "username": "WH1",
    }
