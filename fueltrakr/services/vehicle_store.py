"""
Fueltrakr — Canonical Vehicle Store

Server-side counterpart of the client decode cache, persisted through
SQLAlchemy. Same retention policy: successful decodes stay, failure rows
expire and are deleted on the next read so the VIN can be retried.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from fueltrakr.common.schemas import VehicleRecord
from fueltrakr.common.utils import normalize_vin, utc_now
from fueltrakr.config import get_settings
from fueltrakr.database.models import VehicleRow, as_utc
from fueltrakr.services.decode_cache import RetentionPolicy

logger = logging.getLogger(__name__)


class VehicleStore:
    """Cache-or-fetch storage for the decode proxy."""

    def __init__(
        self,
        db: Session,
        policy: RetentionPolicy | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._db = db
        self._policy = policy or RetentionPolicy.from_settings(get_settings())
        self._clock = clock

    def _expired(self, row: VehicleRow) -> bool:
        expires_at = as_utc(row.expires_at)
        return expires_at is not None and self._clock() >= expires_at

    def get(self, vin: str) -> Optional[VehicleRecord]:
        key = normalize_vin(vin)
        row = self._db.get(VehicleRow, key)
        if row is None:
            return None
        if self._expired(row):
            self._db.delete(row)
            self._db.commit()
            logger.debug(f"Expired failure row removed for VIN {key}")
            return None
        return row.to_record()

    def put(self, record: VehicleRecord) -> None:
        key = normalize_vin(record.vin)
        bound = self._policy.bound_for(record)
        expires_at = self._clock() + bound if bound is not None else None

        row = self._db.get(VehicleRow, key)
        if row is None:
            row = VehicleRow(vin=key)
            self._db.add(row)
        row.apply(record, expires_at)
        self._db.commit()

    def list_all(self) -> List[VehicleRecord]:
        rows = self._db.query(VehicleRow).order_by(VehicleRow.resolved_at.desc()).all()
        return [row.to_record() for row in rows if not self._expired(row)]
