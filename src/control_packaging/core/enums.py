"""Enumerations used across the scan platform."""

from __future__ import annotations

from enum import Enum


class Station(str, Enum):
    """Handling stage that records a scan."""

    WAREHOUSE = "Warehouse"
    SUPPLIER = "Supplier"
    REPAIR = "Repair"

    @classmethod
    def parse(cls, raw: str) -> Station | None:
        """Resolve *raw* to a station, case-insensitively.

        Returns ``None`` when the value names no known station.
        """
        key = raw.strip().lower()
        alias = _STATION_ALIASES.get(key)
        if alias is not None:
            return alias
        for station in cls:
            if station.value.lower() == key:
                return station
        return None


# Short codes submitted by the scan pages
_STATION_ALIASES: dict[str, Station] = {
    "wh": Station.WAREHOUSE,
}


class ScanStatus(str, Enum):
    COMPLETE = "complete"
