"""
Fueltrakr — Domain exceptions.

Transport failures are raised by the HTTP clients and always recovered
inside the decode provider; callers of the pipeline only ever see
VehicleRecord values.
"""

from __future__ import annotations

from typing import Optional


class FueltrakrError(Exception):
    """Base exception for the VIN identification pipeline."""
    pass


class DecodeTransportError(FueltrakrError):
    """A decode endpoint was unreachable, timed out, or answered badly."""

    def __init__(self, message: str, source: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.source = source  # "proxy" | "registry"
        self.status_code = status_code


class FrameSourceError(FueltrakrError):
    """Raised when a capture device or stream cannot be opened."""
    pass


class ManualEntryError(FueltrakrError):
    """Typed scan input matches neither grammar allowed by the scan mode."""
    pass
