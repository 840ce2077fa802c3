"""
Fueltrakr — Scan Pipeline

Wires together: frame sampler → dispatcher → (VIN) validator → cache →
decode provider. Barcodes are returned as scanned; only VINs are decoded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fueltrakr.common.schemas import CandidateKind, ScanCandidate, VehicleRecord
from fueltrakr.edge.scanner import FrameSampler
from fueltrakr.services.vin_service import VinService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanOutcome:
    """Result of one capture session."""
    candidate: ScanCandidate
    vehicle: Optional[VehicleRecord] = None


async def scan_and_decode(
    sampler: FrameSampler,
    vin_service: VinService,
    access_token: Optional[str] = None,
) -> Optional[ScanOutcome]:
    """
    Run one capture session. The frame source is released before any
    decode starts, so closing the camera never waits on the network.
    """
    candidate = await sampler.run()
    if candidate is None:
        logger.info("Capture session closed without a result")
        return None

    if candidate.kind != CandidateKind.VIN:
        return ScanOutcome(candidate=candidate)

    vehicle = await vin_service.decode_vin(candidate.payload, access_token)
    return ScanOutcome(candidate=candidate, vehicle=vehicle)
