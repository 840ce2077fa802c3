"""
Fueltrakr — Vehicle Decode Provider

Resolves a (syntactically valid) VIN to a VehicleRecord:

  cache hit                  → returned as-is, no network call
  miss + credentials         → backend decode proxy, then public registry on failure
  miss, no credentials       → public registry directly
  every outcome              → written back to the cache, returned as data

Blocking `requests` calls run in worker threads so a decode in flight
never stalls the frame sampling loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Tuple

from fueltrakr.common.exceptions import DecodeTransportError
from fueltrakr.common.schemas import REGISTRY_UNAVAILABLE, FailureCause, VehicleRecord
from fueltrakr.common.utils import normalize_vin
from fueltrakr.services.decode_cache import VehicleDecodeCache
from fueltrakr.services.proxy_client import DecodeProxyClient
from fueltrakr.services.registry_client import RegistryClient

logger = logging.getLogger(__name__)


class VehicleDecodeProvider:
    """
    Cache-first decode adapter with proxy → registry fallback.

    With `single_flight`, concurrent callers asking for the same VIN by the
    same route (proxy-capable or registry-only) share one in-flight task, so
    there is a single round trip and a single cache write per VIN and route.
    """

    def __init__(
        self,
        cache: VehicleDecodeCache,
        registry: RegistryClient,
        proxy: DecodeProxyClient | None = None,
        single_flight: bool = True,
    ) -> None:
        self._cache = cache
        self._registry = registry
        self._proxy = proxy
        self._single_flight = single_flight
        self._in_flight: Dict[Tuple[str, bool], asyncio.Task[VehicleRecord]] = {}

    @property
    def cache(self) -> VehicleDecodeCache:
        return self._cache

    async def decode(self, vin: str, credentials: Optional[str] = None) -> VehicleRecord:
        if not isinstance(vin, str):
            raise TypeError(f"vin must be a str, got {type(vin).__name__}")
        key = normalize_vin(vin)

        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"VIN {key} served from cache")
            return cached

        if not self._single_flight:
            return await self._resolve(key, credentials)

        # callers that can use the proxy never join a registry-only decode
        flight = (key, bool(credentials) and self._proxy is not None)
        task = self._in_flight.get(flight)
        if task is None:
            task = asyncio.ensure_future(self._resolve(key, credentials))
            self._in_flight[flight] = task
            task.add_done_callback(lambda _t, f=flight: self._in_flight.pop(f, None))
        else:
            logger.debug(f"VIN {key} joined an in-flight decode")
        # shield: one caller being cancelled must not cancel the shared decode
        return await asyncio.shield(task)

    async def _resolve(self, vin: str, credentials: Optional[str]) -> VehicleRecord:
        record: Optional[VehicleRecord] = None

        if credentials and self._proxy is not None:
            try:
                record = await asyncio.to_thread(self._proxy.decode, vin, credentials)
            except DecodeTransportError as exc:
                logger.warning(f"Backend failed for VIN {vin} ({exc}), trying public registry")

        if record is None:
            record = await asyncio.to_thread(self._registry_decode, vin)

        self._cache.put(record)
        return record

    def _registry_decode(self, vin: str) -> VehicleRecord:
        try:
            return self._registry.decode(vin)
        except Exception as exc:
            # The adapter must always resolve to data, whatever the client does
            logger.error(f"Unexpected registry error for VIN {vin}: {exc}", exc_info=True)
            return VehicleRecord.failed(vin, FailureCause.TRANSPORT, REGISTRY_UNAVAILABLE)
