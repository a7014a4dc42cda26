"""Frame sources for the frame pump."""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Iterator, Optional, Union

import numpy as np

logger = logging.getLogger(__name__)


class FrameSource(ABC):
    """Pull-based BGR frame provider."""

    @abstractmethod
    def read(self) -> Optional[np.ndarray]:
        """Next frame, or None when the source is exhausted."""
        ...

    def release(self) -> None:
        """Release the underlying device/file."""

    def __iter__(self) -> Iterator[np.ndarray]:
        while True:
            frame = self.read()
            if frame is None:
                return
            yield frame

    def __enter__(self) -> "FrameSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()


class OpenCVSource(FrameSource):
    """Camera index or video file via ``cv2.VideoCapture``.

    Args:
        source: Camera index (int) or video path.
        width: Requested capture width (camera only).
        height: Requested capture height (camera only).
    """

    def __init__(self, source: Union[int, str] = 0,
                 width: Optional[int] = None, height: Optional[int] = None):
        import cv2

        self._source = source
        self._cap = cv2.VideoCapture(source)
        if not self._cap.isOpened():
            raise RuntimeError(f"Could not open video source: {source!r}")

        if width:
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        if height:
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        logger.info("Opened video source %r", source)

    @property
    def fps(self) -> float:
        import cv2

        return float(self._cap.get(cv2.CAP_PROP_FPS) or 0.0)

    def read(self) -> Optional[np.ndarray]:
        if self._cap is None:
            return None
        ok, frame = self._cap.read()
        if not ok:
            return None
        return frame

    def release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.debug("Released video source %r", self._source)


class ArraySource(FrameSource):
    """In-memory frames (tests and demos)."""

    def __init__(self, frames: Iterable[np.ndarray]):
        self._frames = iter(frames)
        self._released = False

    def read(self) -> Optional[np.ndarray]:
        if self._released:
            return None
        return next(self._frames, None)

    def release(self) -> None:
        self._released = True


__all__ = ["FrameSource", "OpenCVSource", "ArraySource"]
