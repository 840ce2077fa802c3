"""
Fueltrakr Edge — Frame Classifiers

A classifier looks at one frame and proposes scan candidates, in priority
order (barcode before VIN). Two variants:

  HeuristicClassifier   brightness-transition / edge-density heuristics.
                        Decides only whether a frame *plausibly* holds a
                        barcode or VIN and synthesises a well-formed
                        placeholder payload. No symbology or OCR.
  ProductionClassifier  real decoding via pyzbar (1-D barcodes) and
                        EasyOCR (VIN plates / stickers).
"""

from __future__ import annotations

import random
from typing import Any, Callable, List, Optional, Protocol, Sequence

import cv2
import numpy as np

from fueltrakr.common.logger import get_logger
from fueltrakr.common.schemas import CandidateKind, ScanCandidate
from fueltrakr.common.utils import is_valid_vin
from fueltrakr.config import FueltrakrSettings, get_settings

settings = get_settings()
logger = get_logger(__name__, settings.log_level.value)

# WMI + VDS + year + plant of known sample VINs; a 6-digit serial completes them
PLACEHOLDER_VIN_PREFIXES = (
    "1HGBH41JXMN",
    "2FMDK3GC4DB",
    "5NPE34AF4DH",
    "1G1BE5SM7F7",
    "WBAFR7C59BC",
)

# Letters the VIN alphabet forbids, read as the digits they resemble
_OCR_VIN_CORRECTIONS = str.maketrans({"O": "0", "Q": "0", "I": "1"})


class FrameClassifier(Protocol):
    def classify(self, frame: np.ndarray) -> List[ScanCandidate]:
        ...


def to_brightness(frame: np.ndarray) -> np.ndarray:
    """Per-pixel brightness as float32: channel mean for colour frames."""
    arr = np.asarray(frame, dtype=np.float32)
    if arr.ndim == 3:
        arr = arr[..., :3].mean(axis=2)
    if arr.ndim != 2:
        raise ValueError(f"Expected an HxW or HxWxC frame, got shape {np.shape(frame)}")
    return arr


def correct_vin_text(text: str) -> str:
    """Strip OCR noise and map I/O/Q onto the digits they are confused with."""
    cleaned = "".join(ch for ch in text if ch.isalnum()).upper()
    return cleaned.translate(_OCR_VIN_CORRECTIONS)


# ─── Heuristic variant ───────────────────────────────────────────────────────

class HeuristicClassifier:
    """
    Stateless heuristics over a single frame.

    Barcode: sample `sample_rows` rows spread over the central band
    (40–60 % of the height), count dark/light transitions along each row at
    every second pixel; a row is barcode-like when the count lies strictly
    between the min/max bounds. Enough qualifying rows fire the heuristic.

    VIN region: on a sparse grid, count pixels whose brightness differs from
    either horizontal neighbour by more than a threshold. Enough edges fire.
    """

    DARK_LEVEL = 128.0

    def __init__(
        self,
        config: FueltrakrSettings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        cfg = config or settings
        self._sample_rows = cfg.barcode_sample_rows
        self._min_transitions = cfg.barcode_min_transitions
        self._max_transitions = cfg.barcode_max_transitions
        self._min_rows = cfg.barcode_min_rows
        self._edge_threshold = cfg.edge_brightness_threshold
        self._grid_step = cfg.edge_grid_step
        self._edge_min_count = cfg.edge_min_count
        self._rng = rng or random.Random()

    def classify(self, frame: np.ndarray) -> List[ScanCandidate]:
        brightness = to_brightness(frame)
        candidates: List[ScanCandidate] = []
        if self.looks_like_barcode(brightness):
            candidates.append(
                ScanCandidate(kind=CandidateKind.BARCODE, payload=self._placeholder_barcode())
            )
        if self.looks_like_vin_region(brightness):
            candidates.append(
                ScanCandidate(kind=CandidateKind.VIN, payload=self._placeholder_vin())
            )
        return candidates

    def row_transitions(self, brightness: np.ndarray) -> List[int]:
        """Transition counts for the sampled rows of the central band."""
        height = brightness.shape[0]
        top, bottom = int(height * 0.4), int(height * 0.6)
        if bottom <= top:
            return []
        rows = np.unique(np.linspace(top, bottom - 1, self._sample_rows).astype(int))
        counts = []
        for y in rows:
            dark = brightness[y, ::2] < self.DARK_LEVEL
            # the scan starts in the "light" state, as a leading dark bar is an edge
            changes = np.diff(np.concatenate(([False], dark)).astype(np.int8))
            counts.append(int(np.count_nonzero(changes)))
        return counts

    def looks_like_barcode(self, brightness: np.ndarray) -> bool:
        qualifying = sum(
            1
            for count in self.row_transitions(brightness)
            if self._min_transitions < count < self._max_transitions
        )
        return qualifying >= self._min_rows

    def edge_count(self, brightness: np.ndarray) -> int:
        height, width = brightness.shape
        if height < 3 or width < 3:
            return 0
        ys = np.arange(1, height - 1, self._grid_step)
        xs = np.arange(1, width - 1, self._grid_step)
        centre = brightness[np.ix_(ys, xs)]
        left = brightness[np.ix_(ys, xs - 1)]
        right = brightness[np.ix_(ys, xs + 1)]
        edges = (np.abs(centre - left) > self._edge_threshold) | (
            np.abs(centre - right) > self._edge_threshold
        )
        return int(np.count_nonzero(edges))

    def looks_like_vin_region(self, brightness: np.ndarray) -> bool:
        return self.edge_count(brightness) > self._edge_min_count

    def _placeholder_barcode(self) -> str:
        # 13 digits, EAN-13 length
        return str(self._rng.randrange(10**12, 10**13))

    def _placeholder_vin(self) -> str:
        prefix = self._rng.choice(PLACEHOLDER_VIN_PREFIXES)
        return f"{prefix}{self._rng.randrange(100000, 1000000)}"


# ─── Production variant ──────────────────────────────────────────────────────

class ProductionClassifier:
    """
    Real barcode + OCR decoding. Requires the `vision` extra
    (``pip install fueltrakr[vision]``) and the zbar system library.

    Barcodes whose content is a valid VIN (Code 39 door-jamb labels) are
    proposed as VINs; everything else as barcodes.
    """

    def __init__(
        self,
        languages: Sequence[str] = ("en",),
        min_confidence: float = 0.4,
        gpu: bool | None = None,
    ) -> None:
        self._languages = list(languages)
        self._min_confidence = min_confidence
        self._gpu = gpu if gpu is not None else settings.environment.value != "dev"
        self._barcode_decode: Optional[Callable[..., Any]] = None
        self._ocr_reader: Any = None

    def _load_models(self) -> None:
        if self._barcode_decode is None:
            from pyzbar.pyzbar import decode as zbar_decode

            self._barcode_decode = zbar_decode
        if self._ocr_reader is None:
            import easyocr

            logger.info("Initializing EasyOCR reader locally")
            # EasyOCR downloads its weights on first run
            self._ocr_reader = easyocr.Reader(self._languages, gpu=self._gpu)

    def classify(self, frame: np.ndarray) -> List[ScanCandidate]:
        self._load_models()
        gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY) if frame.ndim == 3 else frame

        candidates = self._barcodes(gray)
        candidates.extend(self._vin_text(gray))
        return candidates

    def _barcodes(self, gray: np.ndarray) -> List[ScanCandidate]:
        found: List[ScanCandidate] = []
        for symbol in self._barcode_decode(gray):
            data = symbol.data.decode("ascii", errors="ignore").strip()
            if not data:
                continue
            vin = correct_vin_text(data)
            if is_valid_vin(vin):
                found.append(ScanCandidate(kind=CandidateKind.VIN, payload=vin))
            else:
                found.append(ScanCandidate(kind=CandidateKind.BARCODE, payload=data))
        return found

    def _vin_text(self, gray: np.ndarray) -> List[ScanCandidate]:
        found: List[ScanCandidate] = []
        # Results format: [(bounding_box, text, confidence)]
        results = sorted(self._ocr_reader.readtext(gray), key=lambda r: r[2], reverse=True)
        for _bbox, text, conf in results:
            if float(conf) < self._min_confidence:
                continue
            vin = correct_vin_text(text)
            if len(vin) == 17:
                found.append(ScanCandidate(kind=CandidateKind.VIN, payload=vin))
        return found
