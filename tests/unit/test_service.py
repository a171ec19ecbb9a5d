"""Tests for the scan service facade (``service.py``)."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from control_packaging.core.config import Settings
from control_packaging.core.errors import (
    DecodeError,
    InvalidPartNoLengthError,
    MissingFieldError,
    StorageError,
    UnknownStationError,
)
from control_packaging.service import ScanService


@pytest.fixture
def service(memory_store, clock) -> ScanService:
    return ScanService(memory_store, Settings(timezone="UTC"), clock)


class TestRecordScan:
    @pytest.mark.asyncio
    async def test_echoes_input_fields(self, service, scan_payload, clock):
        event = await service.record_scan(scan_payload)
        record = event.to_dict()
        for key, value in scan_payload.items():
            assert record[key] == value
        assert record["status"] == "complete"
        assert event.timestamp == clock.now()

    @pytest.mark.asyncio
    async def test_ids_unique(self, service, scan_payload):
        ids = {(await service.record_scan(scan_payload)).id for _ in range(20)}
        assert len(ids) == 20

    @pytest.mark.asyncio
    async def test_rejection_leaves_store_untouched(self, service, memory_store):
        with pytest.raises(MissingFieldError):
            await service.record_scan({"station": "Warehouse"})
        with pytest.raises(UnknownStationError):
            await service.record_scan({"station": "Dock", "packagingId": "P"})
        with pytest.raises(InvalidPartNoLengthError):
            await service.record_scan(
                {"station": "Repair", "packagingId": "P", "partNo": "short"}
            )
        with pytest.raises(DecodeError):
            await service.record_scan("station=Repair")
        assert len(memory_store) == 0

    @pytest.mark.asyncio
    async def test_file_backed_round_trip(self, store_path, clock, scan_payload):
        settings = Settings(store={"data_file": str(store_path)}, timezone="UTC")
        first = ScanService.from_settings(settings, clock)
        event = await first.record_scan(scan_payload)

        second = ScanService.from_settings(settings, clock)
        result = await second.query_history({"packagingId": "PKG-0001"})
        assert result.results == (event,)

    @pytest.mark.asyncio
    async def test_unpaired_surrogate_is_stored(self, store_path, clock):
        settings = Settings(store={"data_file": str(store_path)}, timezone="UTC")
        service = ScanService.from_settings(settings, clock)
        event = await service.record_scan(
            {"station": "Warehouse", "packagingId": "P", "remarks": "\ud800"}
        )
        assert event.remarks == "\ud800"

        reloaded = ScanService.from_settings(settings, clock)
        result = await reloaded.query_history({"packagingId": "P"})
        assert result.results == (event,)


class TestQueryHistory:
    @pytest.mark.asyncio
    async def test_spec_example(self, service, clock):
        for hour, minute, pkg in [(9, 0, "PKG1"), (10, 0, "PKG1"), (9, 30, "PKG2")]:
            clock.set_time(datetime(2024, 5, 15, hour, minute, tzinfo=timezone.utc))
            await service.record_scan({"station": "Warehouse", "packagingId": pkg})

        result = await service.query_history({"packagingId": "PKG1"})
        assert result.count == 2
        assert [e.timestamp.hour for e in result.results] == [9, 10]

        bounded = await service.query_history({
            "packagingId": "PKG1",
            "from": "2024-05-15T09:00:00Z",
            "to": "2024-05-15T09:00:00Z",
        })
        assert bounded.count == 1

    @pytest.mark.asyncio
    async def test_naive_bounds_use_configured_zone(self, memory_store, clock):
        service = ScanService(memory_store, Settings(timezone="Asia/Jakarta"), clock)
        clock.set_time(datetime(2024, 5, 15, 9, tzinfo=timezone.utc))
        await service.record_scan({"station": "Supplier", "packagingId": "P"})

        early = await service.query_history({"packagingId": "P", "to": "2024-05-15T15:59:59"})
        late = await service.query_history({"packagingId": "P", "to": "2024-05-15T16:00:00"})
        assert (early.count, late.count) == (0, 1)

    @pytest.mark.asyncio
    async def test_missing_packaging_id(self, service):
        with pytest.raises(MissingFieldError):
            await service.query_history({"from": "2024-05-01"})

    @pytest.mark.asyncio
    async def test_absent_store_is_empty(self, store_path, clock):
        service = ScanService.from_settings(
            Settings(store={"data_file": str(store_path)}), clock,
        )
        result = await service.query_history({"packagingId": "PKG1"})
        assert result.count == 0
        summary = await service.summary()
        assert (summary.total_today, summary.total_month) == (0, 0)

    @pytest.mark.asyncio
    async def test_corrupt_store_surfaces(self, store_path, clock):
        store_path.parent.mkdir(parents=True)
        store_path.write_text("garbage")
        service = ScanService.from_settings(
            Settings(store={"data_file": str(store_path)}), clock,
        )
        with pytest.raises(StorageError):
            await service.query_history({"packagingId": "PKG1"})
        with pytest.raises(StorageError):
            await service.summary()


class TestSummary:
    @pytest.mark.asyncio
    async def test_uses_clock(self, service, clock):
        clock.set_time(datetime(2024, 4, 30, 10, tzinfo=timezone.utc))
        await service.record_scan({"station": "Repair", "packagingId": "OLD"})
        clock.set_time(datetime(2024, 5, 15, 0, tzinfo=timezone.utc))
        await service.record_scan({"station": "Repair", "packagingId": "NEW"})
        clock.set_time(datetime(2024, 5, 15, 18, tzinfo=timezone.utc))

        result = await service.summary()
        assert (result.total_today, result.total_month) == (1, 1)

        history = await service.query_history({"packagingId": "OLD"})
        assert history.count == 1

    @pytest.mark.asyncio
    async def test_explicit_now(self, service):
        await service.record_scan({"station": "Repair", "packagingId": "P"})
        result = await service.summary(datetime(2024, 6, 1, tzinfo=timezone.utc))
        assert (result.total_today, result.total_month) == (0, 0)

    @pytest.mark.asyncio
    async def test_system_local_month_across_fall_back(
        self, memory_store, clock, new_york_local,
    ):
        service = ScanService(memory_store, Settings(timezone=""), clock)
        # 00:30 EDT on Nov 1
        clock.set_time(datetime(2024, 11, 1, 4, 30, tzinfo=timezone.utc))
        await service.record_scan({"station": "Warehouse", "packagingId": "P"})
        result = await service.summary(datetime(2024, 11, 15, 17, tzinfo=timezone.utc))
        assert (result.total_today, result.total_month) == (0, 1)

    @pytest.mark.asyncio
    async def test_configured_zone_sets_day(self, memory_store, clock):
        service = ScanService(memory_store, Settings(timezone="Asia/Jakarta"), clock)
        # 2024-05-14 18:00 UTC is already the 15th in Jakarta
        clock.set_time(datetime(2024, 5, 14, 18, tzinfo=timezone.utc))
        await service.record_scan({"station": "Warehouse", "packagingId": "P"})
        clock.set_time(datetime(2024, 5, 15, 3, tzinfo=timezone.utc))
        result = await service.summary()
        assert result.total_today == 1
