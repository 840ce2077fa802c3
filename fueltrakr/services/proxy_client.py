"""
Fueltrakr — Decode Proxy Client

Authenticated path to the backend decode proxy (see `proxy_api`):
  POST /decode-vin      {vin}   → flat VehicleRecord JSON
  GET  /vehicles/{vin}          → stored record, 404 when unknown
"""

from __future__ import annotations

import logging
from typing import Optional

import requests
from pydantic import ValidationError

from fueltrakr.common.exceptions import DecodeTransportError
from fueltrakr.common.schemas import VehicleRecord
from fueltrakr.common.utils import normalize_vin
from fueltrakr.config import get_settings

logger = logging.getLogger(__name__)


class DecodeProxyClient:
    """Posts VINs to the decode proxy with a bearer credential."""

    def __init__(
        self,
        base_url: str,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout if timeout is not None else get_settings().http_timeout_s
        self._session = session or requests.Session()

    @staticmethod
    def _headers(token: str) -> dict:
        return {"Content-Type": "application/json", "Authorization": f"Bearer {token}"}

    def decode(self, vin: str, token: str) -> VehicleRecord:
        """
        Any non-success status, transport error or malformed body raises
        DecodeTransportError so the caller can fall back to the registry.
        """
        try:
            resp = self._session.post(
                f"{self._base_url}/decode-vin",
                json={"vin": normalize_vin(vin)},
                headers=self._headers(token),
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise DecodeTransportError(f"Proxy request failed: {exc}", source="proxy") from exc

        if not resp.ok:
            raise DecodeTransportError(
                f"Backend VIN decode failed: {resp.status_code}",
                source="proxy",
                status_code=resp.status_code,
            )
        try:
            return VehicleRecord.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            raise DecodeTransportError(f"Proxy returned an invalid record: {exc}", source="proxy") from exc

    def get_cached(self, vin: str, token: str) -> Optional[VehicleRecord]:
        """Cached lookup only: None when the proxy has no record or is unreachable."""
        try:
            resp = self._session.get(
                f"{self._base_url}/vehicles/{normalize_vin(vin)}",
                headers=self._headers(token),
                timeout=self._timeout,
            )
            if resp.status_code == 404:
                return None
            if not resp.ok:
                logger.warning(f"Failed to get cached vehicle: {resp.status_code}")
                return None
            return VehicleRecord.model_validate(resp.json())
        except (requests.RequestException, ValueError, ValidationError) as exc:
            logger.warning(f"Get cached vehicle error: {exc}")
            return None
