"""
Fueltrakr Edge — Frame Sources

The sampler only ever asks a source for "the next frame"; camera
lifecycle (permissions, device selection) stays with the capture UI.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Union

import cv2
import numpy as np

from fueltrakr.common.exceptions import FrameSourceError


class FrameSource(Protocol):
    def read(self) -> Optional[np.ndarray]:
        """Return the current frame, or None when none is available."""
        ...

    def release(self) -> None:
        ...


class VideoCaptureFrameSource:
    """
    OpenCV-backed source for a camera device, RTSP URL or local video file.

    Parameters
    ----------
    source : int | str
        Device index (``0`` for the default camera) **or** a URL / file path.
    width, height : int, optional
        Requested capture resolution; the device may ignore it.
    """

    def __init__(
        self,
        source: Union[int, str] = 0,
        width: int | None = 1280,
        height: int | None = 720,
    ) -> None:
        self.source = source
        self.logger = logging.getLogger(__name__)
        self._capture: Optional[cv2.VideoCapture] = cv2.VideoCapture(source)
        if not self._capture.isOpened():
            self._capture.release()
            self._capture = None
            raise FrameSourceError(f"Failed to open video source {source!r}")
        if width:
            self._capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        if height:
            self._capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        self.logger.info(f"Opened video source {source!r}")

    def read(self) -> Optional[np.ndarray]:
        if self._capture is None:
            return None
        ret, frame = self._capture.read()
        if not ret:
            return None
        return frame

    def release(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            self.logger.info(f"Released video source {self.source!r}")

    @property
    def is_open(self) -> bool:
        return self._capture is not None
