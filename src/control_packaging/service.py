"""Scan service: the three operations offered to transport collaborators.

* ``record_scan``: decode → validate → append
* ``query_history``: decode → load → filter/sort
* ``summary``: load → calendar fold

Callers are already authenticated.  Every failure is raised as a
``ControlPackagingError`` whose ``to_dict()`` is the error envelope.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from control_packaging.core.clock import IClock, WallClock
from control_packaging.core.config import Settings
from control_packaging.core.errors import ScanValidationError, StorageError
from control_packaging.domain.scan import DashboardSummary, HistoryResult, ScanEvent
from control_packaging.domain.validation import (
    decode_draft,
    decode_history_query,
    validate,
)
from control_packaging.infrastructure.event_store import IScanStore, JsonFileScanStore
from control_packaging.observability.logger import bind_trace_id, get_logger
from control_packaging.query.history import history
from control_packaging.query.summary import summarize

logger = get_logger(__name__)


class ScanService:
    """Facade over the scan store and the read-side queries.

    Parameters
    ----------
    store:
        Scan store implementing :class:`IScanStore`.
    settings:
        Validation rules and timezone.  Defaults to ``Settings()``.
    clock:
        Source of "now" for the dashboard summary.
    """

    def __init__(
        self,
        store: IScanStore,
        settings: Settings | None = None,
        clock: IClock | None = None,
    ) -> None:
        self._store = store
        self._settings = settings or Settings()
        self._clock = clock or WallClock()
        self._tz = self._settings.tz()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        clock: IClock | None = None,
    ) -> ScanService:
        """Build a service backed by the configured JSON snapshot file."""
        clock = clock or WallClock()
        store = JsonFileScanStore(
            settings.store.data_file,
            clock,
            write_retries=settings.store.write_retries,
            retry_backoff_seconds=settings.store.retry_backoff_seconds,
            retry_backoff_max_seconds=settings.store.retry_backoff_max_seconds,
        )
        return cls(store, settings=settings, clock=clock)

    async def record_scan(self, payload: Any) -> ScanEvent:
        """Validate and store one scan.

        Raises:
            DecodeError, MissingFieldError, UnknownStationError,
            InvalidPartNoLengthError: the payload was rejected.
            StorageError: the scan could not be made durable.
        """
        bind_trace_id()
        try:
            scan = validate(decode_draft(payload), self._settings.scan_rules)
        except ScanValidationError as exc:
            logger.info("scan_rejected", error=exc.kind, reason=exc.message)
            raise
        try:
            event = await self._store.append(scan)
        except StorageError as exc:
            logger.error("scan_not_stored", error=exc.kind, reason=exc.message)
            raise
        logger.info(
            "scan_recorded",
            scan_id=event.id,
            station=event.station.value,
            packaging_id=event.packaging_id,
        )
        return event

    async def query_history(self, payload: Any) -> HistoryResult:
        """Chronological scans for one packaging unit, optionally bounded."""
        bind_trace_id()
        query = decode_history_query(payload)
        result = history(
            await self._store.load_all(),
            query.packaging_id,
            from_=query.from_,
            to=query.to,
            tz=self._tz,
        )
        logger.debug(
            "history_queried",
            packaging_id=result.packaging_id,
            count=result.count,
        )
        return result

    async def summary(self, now: datetime | None = None) -> DashboardSummary:
        """Scan totals for today and this month in local calendar time."""
        bind_trace_id()
        at = (now or self._clock.now()).astimezone(self._tz)
        if self._tz is None:
            at = at.replace(tzinfo=None)
        result = summarize(await self._store.load_all(), at)
        logger.debug(
            "summary_computed",
            total_today=result.total_today,
            total_month=result.total_month,
        )
        return result
