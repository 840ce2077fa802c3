"""
Fueltrakr — VIN Service

Entry point used by forms and the scanner: validates VIN syntax before
anything else, then delegates to the decode provider. Malformed VINs are
answered with an explicit invalid record and never reach the provider or
the cache.
"""

from __future__ import annotations

import logging
from typing import Optional

from fueltrakr.common.schemas import INVALID_VIN_FORMAT, FailureCause, VehicleRecord
from fueltrakr.common.utils import is_valid_vin, normalize_vin
from fueltrakr.config import FueltrakrSettings, get_settings
from fueltrakr.services.decode_cache import RetentionPolicy, VehicleDecodeCache
from fueltrakr.services.decode_provider import VehicleDecodeProvider
from fueltrakr.services.proxy_client import DecodeProxyClient
from fueltrakr.services.registry_client import RegistryClient

logger = logging.getLogger(__name__)


class VinService:
    """Validates, then decodes through the provider's cache-first path."""

    def __init__(
        self,
        provider: VehicleDecodeProvider,
        proxy: DecodeProxyClient | None = None,
    ) -> None:
        self._provider = provider
        self._proxy = proxy

    @property
    def cache(self) -> VehicleDecodeCache:
        return self._provider.cache

    async def decode_vin(self, vin: str, access_token: Optional[str] = None) -> VehicleRecord:
        if not isinstance(vin, str):
            raise TypeError(f"vin must be a str, got {type(vin).__name__}")
        if not is_valid_vin(vin):
            logger.info(f"Rejected malformed VIN {vin!r}")
            return VehicleRecord.failed(
                normalize_vin(vin), FailureCause.INVALID_FORMAT, INVALID_VIN_FORMAT
            )
        return await self._provider.decode(vin, access_token)

    def get_cached_vehicle(self, vin: str, access_token: str) -> Optional[VehicleRecord]:
        """
        Look the VIN up without triggering a decode: local cache first,
        then the proxy's canonical store when one is configured.
        """
        local = self.cache.get(vin)
        if local is not None:
            return local
        if self._proxy is None:
            return None
        return self._proxy.get_cached(vin, access_token)

    def clear_cache(self) -> None:
        self.cache.clear()


def build_vin_service(settings: FueltrakrSettings | None = None) -> VinService:
    """Wire the default collaborators from configuration."""
    settings = settings or get_settings()
    cache = VehicleDecodeCache(policy=RetentionPolicy.from_settings(settings))
    registry = RegistryClient(settings.registry_base_url, settings.http_timeout_s)
    proxy = (
        DecodeProxyClient(settings.proxy_base_url, settings.http_timeout_s)
        if settings.proxy_base_url
        else None
    )
    provider = VehicleDecodeProvider(
        cache, registry, proxy=proxy, single_flight=settings.single_flight
    )
    return VinService(provider, proxy=proxy)
