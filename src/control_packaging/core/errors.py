"""Custom exception hierarchy for the scan platform.

Every error renders to a structured envelope via ``to_dict()`` so that a
transport collaborator can show a user-facing message without parsing
exception text.
"""

from __future__ import annotations

from typing import Any


class ControlPackagingError(Exception):
    """Base exception for all control packaging errors."""

    kind: str = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def details(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": False,
            "error": self.kind,
            "message": self.message,
            **self.details(),
        }


# --- Configuration ---
class ConfigError(ControlPackagingError):
    """Invalid or missing configuration."""

    kind = "config_error"


# --- Validation ---
class ScanValidationError(ControlPackagingError):
    """A submitted request was rejected before touching the store."""

    kind = "validation_error"


class DecodeError(ScanValidationError):
    """Payload could not be decoded into a typed request."""

    kind = "decode_error"

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []

    def details(self) -> dict[str, Any]:
        return {"errors": self.errors}


class MissingFieldError(ScanValidationError):
    """A required field is absent or blank."""

    kind = "missing_field"

    def __init__(self, field_name: str) -> None:
        self.field_name = field_name
        super().__init__(f"{field_name} is required")

    def details(self) -> dict[str, Any]:
        return {"field": self.field_name}


class UnknownStationError(ScanValidationError):
    """Station is not one of the known handling stages."""

    kind = "unknown_station"

    def __init__(self, station: str, allowed: list[str]) -> None:
        self.station = station
        self.allowed = allowed
        super().__init__(
            f"Unknown station {station!r}; must be one of: {', '.join(allowed)}"
        )

    def details(self) -> dict[str, Any]:
        return {"field": "station", "station": self.station, "allowed": self.allowed}


class InvalidPartNoLengthError(ScanValidationError):
    """Part number length is outside the accepted range."""

    kind = "invalid_part_no_length"

    def __init__(self, length: int, min_length: int, max_length: int) -> None:
        self.length = length
        self.min_length = min_length
        self.max_length = max_length
        super().__init__(
            f"partNo must be {min_length}-{max_length} characters when given, "
            f"got {length}"
        )

    def details(self) -> dict[str, Any]:
        return {
            "field": "partNo",
            "length": self.length,
            "minLength": self.min_length,
            "maxLength": self.max_length,
        }


# --- Storage ---
class StorageError(ControlPackagingError):
    """The durable store could not be read or written."""

    kind = "storage_error"

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause

    def details(self) -> dict[str, Any]:
        if self.cause is None:
            return {}
        return {"cause": f"{type(self.cause).__name__}: {self.cause}"}
