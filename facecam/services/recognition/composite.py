"""InsightFace detection and attributes with dlib descriptors."""
from typing import List

import numpy as np

from facecam.core.logging import get_logger
from facecam.domain.entities.face import FaceDetection
from facecam.domain.interfaces.recognition.face_analyzer import FaceAnalyzer
from facecam.domain.value_objects.recognition import DetectionOptions
from facecam.services.recognition.dlib_face import DlibFaceAnalyzer
from facecam.services.recognition.insight_face import InsightFaceAnalyzer

logger = get_logger(__name__)


class CompositeFaceAnalyzer(FaceAnalyzer):
    """Pairs InsightFace's detector and age/gender model with dlib's 128-d descriptors.

    Every pass detects with InsightFace, so a descriptor pass and an attribute
    pass over the same frame return the same faces in the same order. dlib
    landmarks and descriptors are computed on the InsightFace boxes.
    """

    def __init__(self, detector: InsightFaceAnalyzer, describer: DlibFaceAnalyzer) -> None:
        self.detector = detector
        self.describer = describer

    @property
    def descriptor_size(self) -> int:
        return self.describer.descriptor_size

    def load(self) -> None:
        self.detector.load()
        self.describer.load()

    async def detect_faces(
        self,
        image: np.ndarray,
        options: DetectionOptions,
        *,
        with_landmarks: bool = False,
        with_descriptors: bool = False,
        with_age_gender: bool = False,
    ) -> List[FaceDetection]:
        faces = await self.detector.detect_faces(image, options, with_age_gender=with_age_gender)
        if not faces or not (with_landmarks or with_descriptors):
            return faces

        logger.debug("Describing InsightFace boxes with dlib", faces=len(faces))
        return await self.describer.describe(image, faces, with_descriptors=with_descriptors)
