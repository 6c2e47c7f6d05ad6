"""Live recognition against the descriptor gallery."""
from typing import Dict, Optional

import numpy as np

from facecam.core.config import settings
from facecam.core.exceptions import NoGalleryError
from facecam.core.logging import get_logger
from facecam.domain.interfaces.media.video_source import VideoSource
from facecam.domain.interfaces.recognition.face_analyzer import FaceAnalyzer
from facecam.domain.value_objects.recognition import (
    DetectionOptions,
    RecognitionResult,
    RecognitionSnapshot,
)
from facecam.services.face_analysis import analyze_faces
from facecam.services.gallery import FaceGallery
from facecam.services.live.loop import LiveLoop
from facecam.services.overlay import OverlaySurface, recognition_annotations

logger = get_logger(__name__)


class RecognitionLoop(LiveLoop):
    """Labels faces in the live video with the nearest enrolled identity.

    The matcher is read from the gallery after inference completes on every
    tick, so an enrollment or removal made while a frame was being analysed
    applies to that frame.
    """

    name = "recognition"

    def __init__(
        self,
        analyzer: FaceAnalyzer,
        gallery: FaceGallery,
        video: VideoSource,
        surface: OverlaySurface,
        options: Optional[DetectionOptions] = None,
        interval: Optional[float] = None,
        max_faces: Optional[int] = None,
    ) -> None:
        super().__init__(video, surface, interval)
        self._analyzer = analyzer
        self._gallery = gallery
        self._options = options or DetectionOptions(
            input_size=settings.LIVE_INPUT_SIZE,
            score_threshold=settings.LIVE_SCORE_THRESHOLD,
        )
        self.max_faces = max_faces or settings.MAX_LIVE_FACES
        self._snapshot = RecognitionSnapshot()

    @property
    def snapshot(self) -> RecognitionSnapshot:
        return self._snapshot

    def start(self) -> bool:
        """Start recognizing.

        Raises:
            NoGalleryError: If nobody is enrolled yet
        """
        if self._gallery.is_empty:
            raise NoGalleryError("No trained faces available. Please train some faces first.")
        return super().start()

    async def process(self, frame: np.ndarray) -> None:
        if self._gallery.is_empty:
            return

        faces = await analyze_faces(
            self._analyzer,
            frame,
            self._options,
            with_descriptors=True,
            with_age_gender=True,
        )
        if not self.is_running:
            return

        matcher = self._gallery.matcher
        results: Dict[int, RecognitionResult] = {}
        for index, face in enumerate(faces[:self.max_faces]):
            if face.descriptor is None:
                continue
            results[index] = RecognitionResult.from_match(matcher.match(face.descriptor), face)

        self._snapshot = RecognitionSnapshot(face_count=len(faces), results=list(results.values()))
        self._surface.draw(recognition_annotations(faces, results))

        if results:
            logger.debug(
                "Frame recognized",
                faces=len(faces),
                labels=[result.label for result in results.values()]
            )

    def _reset(self) -> None:
        self._snapshot = RecognitionSnapshot()
