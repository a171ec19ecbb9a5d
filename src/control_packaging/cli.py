"""CLI entry point for the scan platform."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any

import click

from .core.config import Settings, load_settings
from .core.enums import Station
from .core.errors import ControlPackagingError, ScanValidationError
from .observability.logger import setup_logging
from .service import ScanService

EXIT_VALIDATION = 1
EXIT_STORAGE = 2


def _emit(payload: dict[str, Any]) -> None:
    click.echo(json.dumps(payload, indent=2))


def _run(
    ctx: click.Context,
    op: Callable[[ScanService], Awaitable[Any]],
) -> None:
    """Run *op* against a service built from the loaded settings."""
    settings: Settings = ctx.obj["settings"]
    service = ScanService.from_settings(settings)
    try:
        result = asyncio.run(op(service))
    except ControlPackagingError as exc:
        _emit(exc.to_dict())
        code = EXIT_VALIDATION if isinstance(exc, ScanValidationError) else EXIT_STORAGE
        ctx.exit(code)
    _emit(result.to_dict() if hasattr(result, "to_dict") else result)


@click.group()
@click.option("--config", default=None, help="Config file path (TOML)")
@click.option("--data-file", default=None, help="Scan store file override")
@click.pass_context
def main(ctx: click.Context, config: str | None, data_file: str | None) -> None:
    """Control Packaging scan records."""
    overrides: dict[str, Any] = {}
    if data_file:
        overrides["store"] = {"data_file": data_file}
    try:
        settings = load_settings(config_path=config, overrides=overrides)
    except ControlPackagingError as exc:
        _emit(exc.to_dict())
        ctx.exit(EXIT_STORAGE)
    setup_logging(
        settings.observability.log_level,
        settings.observability.log_format,
    )
    ctx.obj = {"settings": settings}


@main.command()
@click.option(
    "--station",
    required=True,
    help=f"Handling station ({', '.join(s.value for s in Station)})",
)
@click.option("--packaging-id", required=True, help="Packaging unit identifier")
@click.option("--part-no", default=None, help="Part number (11-14 characters)")
@click.option("--action", default=None)
@click.option("--supplier", default=None)
@click.option("--remarks", default=None)
@click.option("--username", default=None, help="Operator recording the scan")
@click.pass_context
def record(
    ctx: click.Context,
    station: str,
    packaging_id: str,
    part_no: str | None,
    action: str | None,
    supplier: str | None,
    remarks: str | None,
    username: str | None,
) -> None:
    """Record one scan."""
    payload = {
        "station": station,
        "packagingId": packaging_id,
        "partNo": part_no,
        "action": action,
        "supplier": supplier,
        "remarks": remarks,
        "username": username,
    }

    async def op(service: ScanService) -> dict[str, Any]:
        event = await service.record_scan(payload)
        return {"ok": True, "record": event.to_dict()}

    _run(ctx, op)


@main.command()
@click.argument("packaging_id")
@click.option("--from", "from_", default=None, help="Inclusive lower bound (ISO 8601)")
@click.option("--to", default=None, help="Inclusive upper bound (ISO 8601)")
@click.pass_context
def history(ctx: click.Context, packaging_id: str, from_: str | None, to: str | None) -> None:
    """Show the scan history of one packaging unit."""
    payload = {"packagingId": packaging_id, "from": from_, "to": to}
    _run(ctx, lambda service: service.query_history(payload))


@main.command()
@click.pass_context
def summary(ctx: click.Context) -> None:
    """Show scan totals for today and this month."""
    _run(ctx, lambda service: service.summary())
