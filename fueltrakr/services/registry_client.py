"""
Fueltrakr — Public Vehicle Registry Client

Calls the public NHTSA vPIC decoder directly (no credentials) and
normalises its tabular `{Variable, Value}` response into a VehicleRecord.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from fueltrakr.common.exceptions import DecodeTransportError
from fueltrakr.common.schemas import REGISTRY_UNAVAILABLE, FailureCause, VehicleRecord
from fueltrakr.common.utils import normalize_vin, utc_now
from fueltrakr.config import get_settings

logger = logging.getLogger(__name__)

# Registry variable name → VehicleRecord field
REGISTRY_FIELDS: Dict[str, str] = {
    "Model Year": "year",
    "Make": "make",
    "Model": "model",
    "Trim": "trim",
    "Engine Model": "engine",
    "Displacement (L)": "displacement",
    "Engine Number of Cylinders": "cylinders",
    "Fuel Type - Primary": "fuel_type",
    "Vehicle Type": "vehicle_type",
    "Body Class": "body_class",
    "Drive Type": "drive_type",
    "Transmission Style": "transmission",
    "Manufacturer Name": "manufacturer",
    "Plant City": "plant_city",
    "Plant State": "plant_state",
}


def normalize_registry_results(vin: str, results: List[Dict[str, Any]]) -> VehicleRecord:
    """
    Flatten registry variable/value pairs. Missing variables stay absent;
    a response lacking year, make or model yields a NOT_FOUND record.
    """
    values: Dict[str, Optional[str]] = {}
    for row in results:
        if not isinstance(row, dict):
            continue
        field = REGISTRY_FIELDS.get(row.get("Variable"))
        # first occurrence wins, like a find() over the list
        if field is None or field in values:
            continue
        values[field] = row.get("Value")

    record = VehicleRecord(vin=normalize_vin(vin), resolved_at=utc_now(), **values)
    if not record.valid:
        # the schema marks it NOT_FOUND with VEHICLE_NOT_FOUND
        logger.info(f"VIN {record.vin} decode failed - insufficient data")
        return record
    logger.info(f"VIN {record.vin} decoded: {record.year} {record.make} {record.model}")
    return record


class RegistryClient:
    """Thin `requests` wrapper around `GET {base}/decodevin/{vin}?format=json`."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        settings = get_settings()
        self._base_url = (base_url or settings.registry_base_url).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.http_timeout_s
        self._session = session or requests.Session()

    def fetch(self, vin: str) -> List[Dict[str, Any]]:
        """Return the raw `Results` list, raising DecodeTransportError on any failure."""
        url = f"{self._base_url}/decodevin/{normalize_vin(vin)}"
        try:
            resp = self._session.get(url, params={"format": "json"}, timeout=self._timeout)
        except requests.RequestException as exc:
            raise DecodeTransportError(f"Registry request failed: {exc}", source="registry") from exc

        if not resp.ok:
            raise DecodeTransportError(
                f"Registry returned HTTP {resp.status_code}",
                source="registry",
                status_code=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise DecodeTransportError("Registry returned a non-JSON body", source="registry") from exc

        results = data.get("Results") if isinstance(data, dict) else None
        return results if isinstance(results, list) else []

    def decode(self, vin: str) -> VehicleRecord:
        """Fetch and normalise; transport failures become TRANSPORT records."""
        vin = normalize_vin(vin)
        try:
            results = self.fetch(vin)
        except DecodeTransportError as exc:
            logger.warning(f"Registry decode failed for VIN {vin}: {exc}")
            return VehicleRecord.failed(vin, FailureCause.TRANSPORT, REGISTRY_UNAVAILABLE)
        return normalize_registry_results(vin, results)
