"""
Fueltrakr — Pydantic Domain Schemas

Strict type-safe data models for every data boundary of the VIN
identification pipeline (decode results, scan candidates, proxy requests).
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


# ─── Enums ────────────────────────────────────────────────────────────────────

class FailureCause(str, Enum):
    INVALID_FORMAT = "INVALID_FORMAT"
    NOT_FOUND = "NOT_FOUND"
    TRANSPORT = "TRANSPORT"


class CandidateKind(str, Enum):
    VIN = "VIN"
    BARCODE = "BARCODE"


class ScanMode(str, Enum):
    AUTO = "AUTO"
    VIN = "VIN"
    BARCODE = "BARCODE"


# ─── Error messages surfaced to the UI ───────────────────────────────────────

INVALID_VIN_FORMAT = "Invalid VIN format"
VEHICLE_NOT_FOUND = "Vehicle information not found for this VIN"
REGISTRY_UNAVAILABLE = "Failed to decode VIN via vehicle registry"

# Optional descriptive fields of a VehicleRecord, shared with the vehicles table
VEHICLE_ATTRIBUTES = (
    "year", "make", "model", "trim", "engine", "displacement", "cylinders",
    "fuel_type", "vehicle_type", "body_class", "drive_type", "transmission",
    "manufacturer", "plant_city", "plant_state",
)


# ─── Domain Models ────────────────────────────────────────────────────────────

class VehicleRecord(BaseModel):
    """
    Outcome of one attempt to resolve a VIN. Immutable once produced.

    `valid` is derived: it is True iff year, make and model are all
    non-empty, whatever value an upstream payload claimed.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    vin: str
    valid: bool = False
    year: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    trim: Optional[str] = None
    engine: Optional[str] = None
    displacement: Optional[str] = None
    cylinders: Optional[str] = None
    fuel_type: Optional[str] = None
    vehicle_type: Optional[str] = None
    body_class: Optional[str] = None
    drive_type: Optional[str] = None
    transmission: Optional[str] = None
    manufacturer: Optional[str] = None
    plant_city: Optional[str] = None
    plant_state: Optional[str] = None
    error: Optional[str] = None
    failure: Optional[FailureCause] = None
    resolved_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc),
        validation_alias=AliasChoices("resolved_at", "cached_at"),
    )

    @field_validator("vin")
    @classmethod
    def _upper_vin(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator(*VEHICLE_ATTRIBUTES, "error", mode="before")
    @classmethod
    def _blank_is_absent(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, str):
            value = str(value)
        value = value.strip()
        return value or None

    @model_validator(mode="after")
    def _derive_validity(self) -> "VehicleRecord":
        valid = bool(self.year and self.make and self.model)
        # frozen model: bypass __setattr__ while still inside validation
        object.__setattr__(self, "valid", valid)
        if valid:
            object.__setattr__(self, "failure", None)
            object.__setattr__(self, "error", None)
        elif self.failure is None:
            object.__setattr__(self, "failure", FailureCause.NOT_FOUND)
            if self.error is None:
                object.__setattr__(self, "error", VEHICLE_NOT_FOUND)
        return self

    @classmethod
    def failed(cls, vin: str, cause: FailureCause, error: str) -> "VehicleRecord":
        return cls(vin=vin, failure=cause, error=error)


class ScanCandidate(BaseModel):
    """Unvalidated string proposed by a frame heuristic. Never persisted."""

    model_config = ConfigDict(frozen=True)

    kind: CandidateKind
    payload: str


class DecodeVinRequest(BaseModel):
    vin: Optional[str] = None
