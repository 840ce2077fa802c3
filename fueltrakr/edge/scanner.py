"""
Fueltrakr Edge — Frame Sampler & Scan Result Dispatcher

One capture session:

    IDLE ──start──▶ SAMPLING ──tick (no candidate)──▶ SAMPLING
                        │
                        └── valid, non-duplicate candidate ──▶ IDLE (halted)

The sampler reads a frame every `interval_s`, asks the classifier for
candidates and hands them to the dispatcher. The dispatcher forwards at
most one candidate per session and halts sampling when it does.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Callable, Iterable, Optional

from fueltrakr.common.exceptions import ManualEntryError
from fueltrakr.common.logger import get_logger
from fueltrakr.common.schemas import CandidateKind, ScanCandidate, ScanMode
from fueltrakr.common.utils import classify_manual, matches_kind
from fueltrakr.config import get_settings
from fueltrakr.edge.classifiers import FrameClassifier
from fueltrakr.edge.frame_source import FrameSource

settings = get_settings()
logger = get_logger(__name__, settings.log_level.value)


class ScanState(str, Enum):
    IDLE = "IDLE"
    SAMPLING = "SAMPLING"


_MODE_KINDS = {
    ScanMode.AUTO: frozenset({CandidateKind.VIN, CandidateKind.BARCODE}),
    ScanMode.VIN: frozenset({CandidateKind.VIN}),
    ScanMode.BARCODE: frozenset({CandidateKind.BARCODE}),
}

_MANUAL_ENTRY_HINTS = {
    ScanMode.AUTO: "Please enter a valid VIN or barcode",
    ScanMode.VIN: "Please enter a valid VIN (17 characters)",
    ScanMode.BARCODE: "Please enter a valid barcode (8-14 digits)",
}


class ScanResultDispatcher:
    """
    Dedup → validate → forward-once.

    A candidate identical to the previous one is ignored (a held-steady
    frame), candidates failing their grammar are heuristic noise and are
    dropped silently, and the first survivor halts sampling and is handed
    to `on_result`.
    """

    def __init__(
        self,
        on_result: Callable[[ScanCandidate], None] | None = None,
        mode: ScanMode = ScanMode.AUTO,
        on_halt: Callable[[], None] | None = None,
    ) -> None:
        self._on_result = on_result
        self._on_halt = on_halt
        self._mode = mode
        self._accepted_kinds = _MODE_KINDS[mode]
        self._last_payload: Optional[str] = None
        self._result: Optional[ScanCandidate] = None

    @property
    def halted(self) -> bool:
        return self._result is not None

    @property
    def result(self) -> Optional[ScanCandidate]:
        return self._result

    def set_halt_hook(self, on_halt: Callable[[], None]) -> None:
        self._on_halt = on_halt

    def on_candidate(self, candidate: ScanCandidate) -> bool:
        """Returns True only for the candidate that was forwarded."""
        if self.halted:
            return False
        if candidate.kind not in self._accepted_kinds:
            return False
        if candidate.payload == self._last_payload:
            return False
        self._last_payload = candidate.payload

        if not matches_kind(candidate.kind, candidate.payload):
            logger.debug(
                "Dropped malformed candidate",
                extra={"context": {"kind": candidate.kind.value, "payload": candidate.payload}},
            )
            return False

        self._result = candidate
        if self._on_halt is not None:
            self._on_halt()
        logger.info(
            "Scan candidate accepted",
            extra={"context": {"kind": candidate.kind.value, "payload": candidate.payload}},
        )
        if self._on_result is not None:
            self._on_result(candidate)
        return True

    def submit_manual(self, text: str) -> Optional[ScanCandidate]:
        """
        Forward typed input through the same path as a camera candidate.

        Blank input is ignored (None), as is input arriving after the session
        already halted. Input matching no grammar the mode allows raises
        ManualEntryError carrying the hint to show the user.
        """
        if not text or not text.strip() or self.halted:
            return None
        candidate = classify_manual(text)
        if candidate is None or candidate.kind not in self._accepted_kinds:
            raise ManualEntryError(_MANUAL_ENTRY_HINTS[self._mode])
        # a deliberate submission is never a repeat of a camera read
        self._last_payload = None
        return candidate if self.on_candidate(candidate) else None

    def reset(self) -> None:
        """Forget the previous session so a new one can start."""
        self._last_payload = None
        self._result = None


class FrameSampler:
    """
    Drives one capture session: a single stream of ticks, no parallel
    sampling. The frame source is always released when `run` exits,
    including on cancellation.
    """

    def __init__(
        self,
        source: FrameSource,
        classifier: FrameClassifier,
        dispatcher: ScanResultDispatcher,
        interval_s: float | None = None,
    ) -> None:
        self._source = source
        self._classifier = classifier
        self._dispatcher = dispatcher
        self._interval_s = interval_s if interval_s is not None else settings.scan_interval_s
        self._state = ScanState.IDLE
        self._released = False
        dispatcher.set_halt_hook(self.stop)

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def dispatcher(self) -> ScanResultDispatcher:
        return self._dispatcher

    def start(self) -> None:
        if self._released:
            raise RuntimeError("Capture session already closed")
        if self._dispatcher.halted:
            return
        self._state = ScanState.SAMPLING

    def stop(self) -> None:
        self._state = ScanState.IDLE

    def tick(self) -> Optional[ScanCandidate]:
        """One sampling step. Returns the candidate forwarded on this tick, if any."""
        if self._state != ScanState.SAMPLING:
            return None
        frame = self._source.read()
        if frame is None:
            return None
        try:
            candidates: Iterable[ScanCandidate] = self._classifier.classify(frame)
        except ValueError as exc:
            logger.warning(f"Frame skipped: {exc}")
            return None
        for candidate in candidates:
            if self._dispatcher.on_candidate(candidate):
                return candidate
        return None

    async def run(self) -> Optional[ScanCandidate]:
        """
        Sample until a candidate is dispatched or `stop()`/`close()` is called.
        Returns the dispatched candidate, or None when the session ended empty.
        """
        self.start()
        try:
            while self._state == ScanState.SAMPLING:
                if self.tick() is not None:
                    break
                await asyncio.sleep(self._interval_s)
        finally:
            self.close()
        return self._dispatcher.result

    def close(self) -> None:
        """Stop sampling and release the frame source (idempotent)."""
        self.stop()
        if not self._released:
            self._released = True
            self._source.release()
