"""Scan domain models.

Python attributes are snake_case; the wire and the persisted snapshot
use camelCase (``packagingId``, ``partNo``) via pydantic aliases.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from control_packaging.core.enums import ScanStatus, Station

_WIRE_CONFIG = ConfigDict(
    frozen=True,
    populate_by_name=True,
    alias_generator=to_camel,
)


def _aware(ts: datetime) -> datetime:
    """Treat naive timestamps as UTC, the way the snapshot was written."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def _coerce_station(v: Any) -> Any:
    if isinstance(v, str):
        station = Station.parse(v)
        if station is not None:
            return station
    return v


# ---------------------------------------------------------------------------
# Stored record
# ---------------------------------------------------------------------------

class ScanEvent(BaseModel):
    """Immutable record of one scan at a station."""

    model_config = _WIRE_CONFIG

    id: int
    timestamp: datetime
    station: Station
    packaging_id: str = Field(min_length=1)
    part_no: str = ""
    action: str = ""
    supplier: str = ""
    remarks: str = ""
    username: str = ""
    status: ScanStatus = ScanStatus.COMPLETE

    @field_validator("station", mode="before")
    @classmethod
    def station_from_code(cls, v: Any) -> Any:
        return _coerce_station(v)

    @field_validator("timestamp")
    @classmethod
    def tz_aware(cls, v: datetime) -> datetime:
        return _aware(v)

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe camelCase representation."""
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Request drafts
# ---------------------------------------------------------------------------

def _scalar_to_str(v: Any) -> Any:
    """Numbers arrive from loose clients; keep them as their string form."""
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return str(v)
    return v


class ScanDraft(BaseModel):
    """Decoded but not yet validated scan submission."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )

    station: str | None = None
    packaging_id: str | None = None
    part_no: str | None = None
    action: str | None = None
    supplier: str | None = None
    remarks: str | None = None
    username: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def coerce_scalars(cls, v: Any) -> Any:
        return _scalar_to_str(v)


class ValidScan(BaseModel):
    """Scan that passed validation and is ready for ``append``.

    ``id`` and ``timestamp`` are assigned by the store when left unset.
    """

    model_config = _WIRE_CONFIG

    station: Station
    packaging_id: str = Field(min_length=1)
    part_no: str = ""
    action: str = ""
    supplier: str = ""
    remarks: str = ""
    username: str = ""
    status: ScanStatus = ScanStatus.COMPLETE
    id: int | None = None
    timestamp: datetime | None = None

    def stamp(self, scan_id: int, timestamp: datetime) -> ScanEvent:
        """Build the stored record, keeping any preassigned id/timestamp."""
        return ScanEvent(
            id=self.id if self.id is not None else scan_id,
            timestamp=self.timestamp if self.timestamp is not None else timestamp,
            station=self.station,
            packaging_id=self.packaging_id,
            part_no=self.part_no,
            action=self.action,
            supplier=self.supplier,
            remarks=self.remarks,
            username=self.username,
            status=self.status,
        )


class HistoryQuery(BaseModel):
    """Decoded history request.  Bounds stay raw until the query parses them."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
    )

    packaging_id: str | None = Field(default=None, alias="packagingId")
    from_: str | datetime | None = Field(default=None, alias="from")
    to: str | datetime | None = None

    @field_validator("packaging_id", mode="before")
    @classmethod
    def coerce_scalars(cls, v: Any) -> Any:
        return _scalar_to_str(v)


# ---------------------------------------------------------------------------
# Query results
# ---------------------------------------------------------------------------

class HistoryResult(BaseModel):
    """Chronological scans for one packaging unit."""

    model_config = _WIRE_CONFIG

    packaging_id: str
    count: int
    results: tuple[ScanEvent, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"ok": True, **self.model_dump(mode="json", by_alias=True)}


class DashboardSummary(BaseModel):
    """Scan counts for the current day and month."""

    model_config = _WIRE_CONFIG

    total_today: int = 0
    total_month: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"ok": True, **self.model_dump(mode="json", by_alias=True)}
