"""OpenCV webcam video source."""
import asyncio
import threading
import time
from typing import Optional, Tuple

import cv2
import numpy as np

from facecam.core.config import settings
from facecam.core.exceptions import MediaAccessError
from facecam.core.logging import get_logger
from facecam.domain.interfaces.media.video_source import VideoSource

logger = get_logger(__name__)


class WebcamSource(VideoSource):
    """Local camera read through `cv2.VideoCapture`.

    Device calls block, so they run in worker threads and are serialized by a
    lock. A failed read marks the stream as ended; it stays ended until the
    source is stopped and started again.
    """

    def __init__(
        self,
        index: Optional[int] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
        ready_timeout: Optional[float] = None,
    ) -> None:
        self.index = settings.CAMERA_INDEX if index is None else index
        self.width = width or settings.CAMERA_WIDTH
        self.height = height or settings.CAMERA_HEIGHT
        self.ready_timeout = settings.CAMERA_READY_TIMEOUT if ready_timeout is None else ready_timeout
        self._capture: Optional[cv2.VideoCapture] = None
        self._frame_size: Optional[Tuple[int, int]] = None
        self._ended = False
        self._lock = threading.Lock()

    @property
    def is_playing(self) -> bool:
        return self._capture is not None and not self._ended

    @property
    def frame_size(self) -> Optional[Tuple[int, int]]:
        return self._frame_size

    async def start(self) -> None:
        if self._capture is not None and not self._ended:
            logger.debug("Webcam already started", index=self.index)
            return
        self.stop()

        capture, frame = await asyncio.to_thread(self._open)
        with self._lock:
            self._capture = capture
            self._frame_size = (frame.shape[1], frame.shape[0])
            self._ended = False

        logger.info("Webcam started", index=self.index, frame_size=self._frame_size)

    def stop(self) -> None:
        with self._lock:
            capture, self._capture = self._capture, None
            self._frame_size = None
            self._ended = False
        if capture is not None:
            capture.release()
            logger.info("Webcam stopped", index=self.index)

    async def read_frame(self) -> Optional[np.ndarray]:
        if not self.is_playing:
            return None
        return await asyncio.to_thread(self._read)

    def _open(self) -> Tuple[cv2.VideoCapture, np.ndarray]:
        capture = cv2.VideoCapture(self.index)
        if not capture.isOpened():
            capture.release()
            raise MediaAccessError(
                "Unable to access webcam. Please make sure you have granted camera permissions.",
                details={"index": self.index}
            )

        capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

        deadline = time.monotonic() + self.ready_timeout
        while True:
            ok, frame = capture.read()
            if ok and frame is not None:
                return capture, frame
            if time.monotonic() >= deadline:
                capture.release()
                raise MediaAccessError(
                    "Webcam did not deliver a frame in time",
                    details={"index": self.index, "timeout": self.ready_timeout}
                )
            time.sleep(0.05)

    def _read(self) -> Optional[np.ndarray]:
        with self._lock:
            if self._capture is None or self._ended:
                return None
            ok, frame = self._capture.read()
            if not ok or frame is None:
                self._ended = True
                logger.warning("Webcam stream ended", index=self.index)
                return None
            return frame
