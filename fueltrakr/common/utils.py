"""
Fueltrakr — Shared Utilities

Pure, stateless helpers: VIN / barcode grammar checks, typed-input
classification and time.
None of these touch the network or any shared state.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

from fueltrakr.common.schemas import CandidateKind, ScanCandidate

# 17 characters, I / O / Q excluded (ambiguous with 1 / 0)
VIN_PATTERN = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$")
# EAN-8 through GTIN-14
BARCODE_PATTERN = re.compile(r"^\d{8,14}$")


def normalize_vin(value: str) -> str:
    """Canonical cache key form of a VIN."""
    return value.strip().upper()


def is_valid_vin(value: object) -> bool:
    """
    True iff `value`, upper-cased, is exactly 17 characters from
    [A-Z0-9] without I, O or Q. Total: non-strings are simply invalid.
    """
    if not isinstance(value, str):
        return False
    return VIN_PATTERN.fullmatch(value.upper()) is not None


def is_valid_barcode(value: object) -> bool:
    if not isinstance(value, str):
        return False
    return BARCODE_PATTERN.fullmatch(value) is not None


def matches_kind(kind: CandidateKind, payload: str) -> bool:
    """Check a scan payload against the grammar implied by its kind."""
    if kind == CandidateKind.VIN:
        return is_valid_vin(payload)
    if kind == CandidateKind.BARCODE:
        return is_valid_barcode(payload)
    return False


def classify_manual(text: str) -> Optional[ScanCandidate]:
    """
    Infer the kind of typed scan input: a VIN (upper-cased) takes precedence
    over a barcode. None when the trimmed text matches neither grammar.
    """
    value = text.strip()
    if is_valid_vin(value):
        return ScanCandidate(kind=CandidateKind.VIN, payload=value.upper())
    if is_valid_barcode(value):
        return ScanCandidate(kind=CandidateKind.BARCODE, payload=value)
    return None


def utc_now() -> datetime:
    """Return the current UTC datetime (timezone-aware)."""
    return datetime.now(tz=timezone.utc)
