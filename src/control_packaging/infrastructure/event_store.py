"""Append-only scan store.

Design invariants
-----------------
1.  ``append()`` is the only mutation.  Scans are never updated or
    deleted.
2.  ``load_all()`` returns scans in **append order**; that order breaks
    ties between equal timestamps.
3.  All appends are serialized through one ``asyncio.Lock`` for the whole
    read-modify-write, so two concurrent scans can never overwrite each
    other.
4.  A scan becomes visible to readers only after it is durable.  If the
    write fails, the in-memory view is exactly what it was before.

This module provides:

*  ``IScanStore``: the protocol.
*  ``InMemoryScanStore``: tuple-backed implementation for tests and
   ephemeral runs.
*  ``JsonFileScanStore``: single JSON document ``{"scans": [...]}``
   rewritten as an atomic snapshot on every append.  A missing file means
   no scans have been recorded yet; any other read failure is a
   ``StorageError``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from control_packaging.core.clock import IClock, WallClock
from control_packaging.core.errors import StorageError
from control_packaging.core.file_io import atomic_write_text
from control_packaging.core.ids import next_scan_id
from control_packaging.domain.scan import ScanEvent, ValidScan

logger = logging.getLogger(__name__)

SNAPSHOT_FIELD = "scans"


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

class IScanStore(Protocol):
    """Durable owner of the ordered scan sequence."""

    async def append(self, scan: ValidScan) -> ScanEvent:
        """Stamp, persist, and return *scan*.  Raises ``StorageError``."""
        ...

    async def load_all(self) -> tuple[ScanEvent, ...]:
        """Every stored scan in append order.  Raises ``StorageError``."""
        ...


def _stamp(scan: ValidScan, clock: IClock, last_id: int | None) -> ScanEvent:
    now = clock.now()
    return scan.stamp(next_scan_id(now, last_id), now)


def _max_id(last_id: int | None, event: ScanEvent) -> int:
    return event.id if last_id is None else max(last_id, event.id)


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------

class InMemoryScanStore:
    """Tuple-backed scan store.  No persistence across restarts.

    Good for: unit tests, local development.
    """

    def __init__(self, clock: IClock | None = None) -> None:
        self._clock = clock or WallClock()
        self._events: tuple[ScanEvent, ...] = ()
        self._last_id: int | None = None
        self._lock = asyncio.Lock()

    async def append(self, scan: ValidScan) -> ScanEvent:
        async with self._lock:
            event = _stamp(scan, self._clock, self._last_id)
            self._events = (*self._events, event)
            self._last_id = _max_id(self._last_id, event)
            return event

    async def load_all(self) -> tuple[ScanEvent, ...]:
        return self._events

    def __len__(self) -> int:
        return len(self._events)


# ---------------------------------------------------------------------------
# JSON snapshot file implementation
# ---------------------------------------------------------------------------

class JsonFileScanStore:
    """Snapshot-file scan store.  Durable across restarts.

    Each append rewrites the whole ``{"scans": [...]}`` document through
    :func:`atomic_write_text`.  The file is read once, lazily, and the
    in-memory tuple is authoritative afterwards, so the store assumes it
    is the only writer of *path*.

    Parameters
    ----------
    path:
        Location of the JSON snapshot.
    clock:
        Source of scan timestamps (defaults to wall-clock UTC).
    write_retries:
        Attempts per append before giving up with ``StorageError``.
    retry_backoff_seconds:
        Base delay for exponential backoff between attempts.
    retry_backoff_max_seconds:
        Upper bound on a single backoff delay.
    """

    def __init__(
        self,
        path: str | Path,
        clock: IClock | None = None,
        *,
        write_retries: int = 3,
        retry_backoff_seconds: float = 0.05,
        retry_backoff_max_seconds: float = 1.0,
    ) -> None:
        if write_retries < 1:
            raise ValueError("write_retries must be at least 1")
        self._path = Path(path)
        self._clock = clock or WallClock()
        self._write_retries = write_retries
        self._retry_backoff_seconds = retry_backoff_seconds
        self._retry_backoff_max_seconds = retry_backoff_max_seconds

        self._events: tuple[ScanEvent, ...] | None = None
        self._last_id: int | None = None
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    # -- public API ---------------------------------------------------------

    async def append(self, scan: ValidScan) -> ScanEvent:
        async with self._lock:
            current = self._ensure_loaded()
            event = _stamp(scan, self._clock, self._last_id)
            pending = (*current, event)
            await self._persist(pending)
            self._events = pending
            self._last_id = _max_id(self._last_id, event)
            logger.debug(
                "Appended scan %d for %s (%d total)",
                event.id, event.packaging_id, len(pending),
            )
            return event

    async def load_all(self) -> tuple[ScanEvent, ...]:
        if self._events is not None:
            return self._events
        async with self._lock:
            return self._ensure_loaded()

    def __len__(self) -> int:
        return len(self._events or ())

    # -- internals ----------------------------------------------------------

    def _ensure_loaded(self) -> tuple[ScanEvent, ...]:
        """Read the snapshot if not yet cached.  Must hold ``_lock``."""
        if self._events is None:
            events = self._read_snapshot()
            last_id: int | None = None
            for event in events:
                last_id = _max_id(last_id, event)
            self._events = events
            self._last_id = last_id
            logger.info("Loaded %d scans from %s", len(events), self._path)
        return self._events

    def _read_snapshot(self) -> tuple[ScanEvent, ...]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ()
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(
                f"Cannot read scan store {self._path}", cause=exc,
            ) from exc

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageError(
                f"Scan store {self._path} is not valid JSON", cause=exc,
            ) from exc

        if not isinstance(document, dict) or not isinstance(
            document.get(SNAPSHOT_FIELD), list
        ):
            raise StorageError(
                f"Scan store {self._path} has no '{SNAPSHOT_FIELD}' list"
            )

        events: list[ScanEvent] = []
        for index, record in enumerate(document[SNAPSHOT_FIELD]):
            try:
                events.append(ScanEvent.model_validate(record))
            except ValidationError as exc:
                raise StorageError(
                    f"Scan store {self._path} has a malformed record at "
                    f"index {index}",
                    cause=exc,
                ) from exc
        return tuple(events)

    def _serialize(self, events: tuple[ScanEvent, ...]) -> str:
        document: dict[str, Any] = {
            SNAPSHOT_FIELD: [event.to_dict() for event in events],
        }
        return json.dumps(document, indent=2)

    async def _persist(self, events: tuple[ScanEvent, ...]) -> None:
        """Write the snapshot, retrying with bounded backoff."""
        text = self._serialize(events)
        for attempt in range(1, self._write_retries + 1):
            try:
                atomic_write_text(self._path, text)
                return
            except OSError as exc:
                if attempt == self._write_retries:
                    logger.error(
                        "Scan store write failed after %d attempts: %s",
                        attempt, exc,
                    )
                    raise StorageError(
                        f"Cannot write scan store {self._path} after "
                        f"{attempt} attempts",
                        cause=exc,
                    ) from exc
                wait = self._backoff_delay(attempt)
                logger.warning(
                    "Scan store write failed (attempt %d/%d), retrying in %.2fs: %s",
                    attempt, self._write_retries, wait, exc,
                )
                await asyncio.sleep(wait)

    def _backoff_delay(self, attempt: int) -> float:
        return min(
            self._retry_backoff_seconds * (2 ** (attempt - 1)),
            self._retry_backoff_max_seconds,
        )
