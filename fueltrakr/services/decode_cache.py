"""
Fueltrakr — Vehicle Decode Cache

Local, per-process map of normalised VIN → VehicleRecord.

Successful decodes are kept for the lifetime of the cache. Failure
records are kept only for a retention bound that depends on the failure
cause, after which `get` evicts them so a later lookup retries.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from fueltrakr.common.schemas import FailureCause, VehicleRecord
from fueltrakr.common.utils import normalize_vin, utc_now
from fueltrakr.config import FueltrakrSettings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetentionPolicy:
    """How long failure records are trusted before being retried."""
    not_found: timedelta = timedelta(minutes=15)
    transport: timedelta = timedelta(minutes=5)

    @classmethod
    def from_settings(cls, settings: FueltrakrSettings) -> "RetentionPolicy":
        return cls(
            not_found=timedelta(seconds=settings.failure_retention_not_found_s),
            transport=timedelta(seconds=settings.failure_retention_transport_s),
        )

    def bound_for(self, record: VehicleRecord) -> Optional[timedelta]:
        """None means keep indefinitely."""
        if record.valid:
            return None
        if record.failure == FailureCause.TRANSPORT:
            return self.transport
        return self.not_found


@dataclass(frozen=True)
class _Entry:
    record: VehicleRecord
    expires_at: Optional[datetime]


class VehicleDecodeCache:
    """
    Thread-safe decode cache. A single lock guards the map; contention is
    low (a form prefetch and a scanner at most).
    """

    def __init__(
        self,
        policy: RetentionPolicy | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._policy = policy or RetentionPolicy.from_settings(get_settings())
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def get(self, vin: str) -> Optional[VehicleRecord]:
        key = normalize_vin(vin)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at is not None and self._clock() >= entry.expires_at:
                del self._entries[key]
                logger.debug(f"Expired failure record evicted for VIN {key}")
                return None
            return entry.record

    def put(self, record: VehicleRecord) -> None:
        bound = self._policy.bound_for(record)
        expires_at = self._clock() + bound if bound is not None else None
        with self._lock:
            self._entries[normalize_vin(record.vin)] = _Entry(record, expires_at)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, vin: object) -> bool:
        return isinstance(vin, str) and self.get(vin) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
