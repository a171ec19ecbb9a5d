"""Gatekeeper between untrusted scan payloads and the event store.

Two steps:

1.  ``decode_draft()`` turns a loose mapping into a typed ``ScanDraft``
    or raises ``DecodeError``.
2.  ``validate()`` applies the structural rules in a fixed order:
    packagingId, then station, then partNo.  The first failure wins.

Neither step touches the store.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from control_packaging.core.config import ScanRulesConfig
from control_packaging.core.enums import Station
from control_packaging.core.errors import (
    DecodeError,
    InvalidPartNoLengthError,
    MissingFieldError,
    UnknownStationError,
)
from control_packaging.domain.scan import HistoryQuery, ScanDraft, ValidScan


_DEFAULT_RULES = ScanRulesConfig()


def _decode(model: type[BaseModel], payload: Any, what: str) -> Any:
    if isinstance(payload, model):
        return payload
    if not isinstance(payload, Mapping):
        raise DecodeError(
            f"{what} must be an object, got {type(payload).__name__}"
        )
    try:
        return model.model_validate(dict(payload))
    except ValidationError as exc:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        raise DecodeError(f"Malformed {what}", errors=errors) from exc


def decode_draft(payload: Any) -> ScanDraft:
    """Decode a raw scan submission into a ``ScanDraft``."""
    return _decode(ScanDraft, payload, "scan request")


def decode_history_query(payload: Any) -> HistoryQuery:
    """Decode a raw history request into a ``HistoryQuery``."""
    return _decode(HistoryQuery, payload, "history request")


def validate(
    draft: ScanDraft,
    rules: ScanRulesConfig = _DEFAULT_RULES,
) -> ValidScan:
    """Check *draft* and return a normalized ``ValidScan``.

    Raises:
        MissingFieldError: packagingId or station is absent or blank.
        UnknownStationError: station names no known handling stage.
        InvalidPartNoLengthError: partNo is given but its trimmed length
            is outside ``[part_no_min_length, part_no_max_length]``.
    """
    packaging_id = (draft.packaging_id or "").strip()
    if not packaging_id:
        raise MissingFieldError("packagingId")

    raw_station = (draft.station or "").strip()
    if not raw_station:
        raise MissingFieldError("station")
    station = Station.parse(raw_station)
    if station is None:
        raise UnknownStationError(raw_station, [s.value for s in Station])

    part_no = (draft.part_no or "").strip()
    if part_no:
        length = len(part_no)
        if not rules.part_no_min_length <= length <= rules.part_no_max_length:
            raise InvalidPartNoLengthError(
                length, rules.part_no_min_length, rules.part_no_max_length,
            )

    return ValidScan(
        station=station,
        packaging_id=packaging_id,
        part_no=part_no,
        action=draft.action or "",
        supplier=draft.supplier or "",
        remarks=draft.remarks or "",
        username=draft.username or "",
    )
