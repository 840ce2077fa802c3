"""
Fueltrakr — SQLAlchemy ORM Models

The proxy's canonical store of decoded vehicles, keyed by VIN. Uses
create_all() at startup; there are no migrations.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, String

from fueltrakr.common.schemas import VEHICLE_ATTRIBUTES, FailureCause, VehicleRecord
from fueltrakr.database.session import Base


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything stored here is UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ── Vehicles ───────────────────────────────────────────────────────────────────

class VehicleRow(Base):
    __tablename__ = "vehicles"

    vin = Column(String(17), primary_key=True)
    valid = Column(Boolean, nullable=False, default=False)
    year = Column(String, nullable=True)
    make = Column(String, nullable=True)
    model = Column(String, nullable=True)
    trim = Column(String, nullable=True)
    engine = Column(String, nullable=True)
    displacement = Column(String, nullable=True)
    cylinders = Column(String, nullable=True)
    fuel_type = Column(String, nullable=True)
    vehicle_type = Column(String, nullable=True)
    body_class = Column(String, nullable=True)
    drive_type = Column(String, nullable=True)
    transmission = Column(String, nullable=True)
    manufacturer = Column(String, nullable=True)
    plant_city = Column(String, nullable=True)
    plant_state = Column(String, nullable=True)
    error = Column(String, nullable=True)
    failure = Column(String, nullable=True)         # NOT_FOUND | TRANSPORT
    resolved_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)  # failures only

    def apply(self, record: VehicleRecord, expires_at: Optional[datetime]) -> None:
        self.valid = record.valid
        for name in VEHICLE_ATTRIBUTES:
            setattr(self, name, getattr(record, name))
        self.error = record.error
        self.failure = record.failure.value if record.failure else None
        self.resolved_at = record.resolved_at
        self.expires_at = expires_at

    def to_record(self) -> VehicleRecord:
        return VehicleRecord(
            vin=self.vin,
            error=self.error,
            failure=FailureCause(self.failure) if self.failure else None,
            resolved_at=as_utc(self.resolved_at),
            **{name: getattr(self, name) for name in VEHICLE_ATTRIBUTES},
        )
