"""
Test helpers: fake clocks, mocked HTTP responses, scripted frame sources
and classifiers, synthetic frames.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, List, Optional
from unittest.mock import MagicMock

import numpy as np

from fueltrakr.common.schemas import CandidateKind, ScanCandidate

HONDA_VIN = "1HGBH41JXMN109186"

HONDA_RESULTS = [
    {"Variable": "Model Year", "Value": "2010"},
    {"Variable": "Make", "Value": "Honda"},
    {"Variable": "Model", "Value": "Civic"},
]


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def make_response(status_code: int = 200, payload: Any = None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 400
    resp.json.return_value = payload
    return resp


def registry_payload(results: List[dict]) -> dict:
    return {"Count": len(results), "Message": "Results returned successfully", "Results": results}


class ListFrameSource:
    """Yields the given frames in order, then None forever."""

    def __init__(self, frames: Iterable[np.ndarray]) -> None:
        self._frames = list(frames)
        self.released = False
        self.reads = 0

    def read(self) -> Optional[np.ndarray]:
        self.reads += 1
        return self._frames.pop(0) if self._frames else None

    def release(self) -> None:
        self.released = True


class ScriptedClassifier:
    """Returns one scripted candidate list per call, then nothing."""

    def __init__(self, script: Iterable[List[ScanCandidate]]) -> None:
        self._script = list(script)

    def classify(self, frame: np.ndarray) -> List[ScanCandidate]:
        return self._script.pop(0) if self._script else []


class RandomFallbackClassifier:
    """
    TEST STUB ONLY: when the wrapped classifier finds nothing, emit a random
    sample VIN/barcode with the given probability, so the whole pipeline can
    run without recognisable frames. Never used outside the tests.
    """

    SAMPLE_BARCODES = ("1234567890123", "9876543210987", "4567890123456")
    SAMPLE_VINS = (HONDA_VIN, "2FMDK3GC4DBA12345", "5NPE34AF4DH123456")

    def __init__(self, inner: Any, probability: float = 0.05, rng: random.Random | None = None) -> None:
        self._inner = inner
        self._probability = probability
        self._rng = rng or random.Random(0)

    def classify(self, frame: np.ndarray) -> List[ScanCandidate]:
        found = self._inner.classify(frame)
        if found or self._rng.random() >= self._probability:
            return found
        pool = [ScanCandidate(kind=CandidateKind.BARCODE, payload=p) for p in self.SAMPLE_BARCODES]
        pool += [ScanCandidate(kind=CandidateKind.VIN, payload=p) for p in self.SAMPLE_VINS]
        return [self._rng.choice(pool)]


# ── Frames ─────────────────────────────────────────────────────────────────────

def barcode_frame(height: int = 100, width: int = 320, bar: int = 4) -> np.ndarray:
    """Vertical black/white bars of `bar` px across the whole frame."""
    columns = (np.arange(width) // bar) % 2 == 0
    row = np.where(columns, 0, 255).astype(np.uint8)
    gray = np.tile(row, (height, 1))
    return np.stack([gray] * 3, axis=2)


def text_frame(height: int = 100, width: int = 320, seed: int = 0) -> np.ndarray:
    """Salt-and-pepper noise in the top 30 % only (text-like), flat grey elsewhere."""
    rng = np.random.default_rng(seed)
    gray = np.full((height, width), 160, dtype=np.uint8)
    noisy_rows = int(height * 0.3)
    gray[:noisy_rows] = rng.choice([0, 255], size=(noisy_rows, width)).astype(np.uint8)
    return np.stack([gray] * 3, axis=2)


def flat_frame(height: int = 100, width: int = 320, level: int = 160) -> np.ndarray:
    return np.full((height, width, 3), level, dtype=np.uint8)


