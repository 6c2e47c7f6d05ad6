"""Live face detection with age and gender."""
from typing import Optional

import numpy as np

from facecam.core.config import settings
from facecam.core.logging import get_logger
from facecam.domain.interfaces.media.video_source import VideoSource
from facecam.domain.interfaces.recognition.face_analyzer import FaceAnalyzer
from facecam.domain.value_objects.recognition import DetectionOptions, DetectionSnapshot, FaceAttributes
from facecam.services.live.loop import LiveLoop
from facecam.services.overlay import OverlaySurface, detection_annotations

logger = get_logger(__name__)


class DetectionLoop(LiveLoop):
    """Boxes every face in the live video and labels the first few with age/gender."""

    name = "detection"

    def __init__(
        self,
        analyzer: FaceAnalyzer,
        video: VideoSource,
        surface: OverlaySurface,
        options: Optional[DetectionOptions] = None,
        interval: Optional[float] = None,
        max_faces: Optional[int] = None,
    ) -> None:
        super().__init__(video, surface, interval)
        self._analyzer = analyzer
        self._options = options or DetectionOptions(
            input_size=settings.LIVE_INPUT_SIZE,
            score_threshold=settings.LIVE_SCORE_THRESHOLD,
        )
        self.max_faces = max_faces or settings.MAX_LIVE_FACES
        self._snapshot = DetectionSnapshot()

    @property
    def snapshot(self) -> DetectionSnapshot:
        return self._snapshot

    async def process(self, frame: np.ndarray) -> None:
        faces = await self._analyzer.detect_faces(frame, self._options, with_age_gender=True)
        if not self.is_running:
            return

        self._snapshot = DetectionSnapshot(
            face_count=len(faces),
            faces=[FaceAttributes.from_face(face) for face in faces[:self.max_faces]],
        )
        self._surface.draw(detection_annotations(faces, self.max_faces))

    def _reset(self) -> None:
        self._snapshot = DetectionSnapshot()
