"""dlib face analyzer backed by the face_recognition package.

Produces the 128-d ResNet descriptors the 0.6 distance threshold is tuned for.
"""
import asyncio
from typing import List, Optional, Sequence, Tuple

import cv2
import face_recognition
import numpy as np

from facecam.core.config import settings
from facecam.core.exceptions import InvalidImageError, TransientInferenceError
from facecam.core.logging import get_logger
from facecam.domain.entities.face import BoundingBox, FaceDetection
from facecam.domain.interfaces.recognition.face_analyzer import FaceAnalyzer
from facecam.domain.value_objects.recognition import DetectionOptions

logger = get_logger(__name__)

# face_recognition uses (top, right, bottom, left) in pixels
Location = Tuple[int, int, int, int]

ENCODING_SIZE = 128


class DlibFaceAnalyzer(FaceAnalyzer):
    """HOG detection, 68-point landmarks and 128-d descriptors. No age/gender.

    The HOG detector reports no score, so `score` is None and the score
    threshold is not applied. Detection runs on the frame scaled down so its
    longer side matches the requested input size; landmarks and descriptors
    are computed on the full-resolution frame.
    """

    def __init__(self, landmark_model: Optional[str] = None, upsample: int = 1) -> None:
        self.landmark_model = landmark_model or settings.DLIB_LANDMARK_MODEL
        self.upsample = upsample

    @property
    def descriptor_size(self) -> int:
        return ENCODING_SIZE

    def load(self) -> None:
        # face_recognition loads its dlib models on import; one call warms them up
        face_recognition.face_locations(np.zeros((32, 32, 3), dtype=np.uint8), model="hog")
        logger.info("dlib models loaded", landmark_model=self.landmark_model)

    async def detect_faces(
        self,
        image: np.ndarray,
        options: DetectionOptions,
        *,
        with_landmarks: bool = False,
        with_descriptors: bool = False,
        with_age_gender: bool = False,
    ) -> List[FaceDetection]:
        rgb = self._to_rgb(image)
        locations = await asyncio.to_thread(self._locate, rgb, options.input_size)
        return await asyncio.to_thread(
            self._describe_locations, rgb, locations, with_landmarks, with_descriptors
        )

    async def describe(
        self,
        image: np.ndarray,
        faces: Sequence[FaceDetection],
        with_descriptors: bool = True,
    ) -> List[FaceDetection]:
        """Attach dlib landmarks and descriptors to faces found by another detector.

        Order, count and any age/gender estimates of `faces` are preserved.
        """
        rgb = self._to_rgb(image)
        height, width = rgb.shape[:2]
        locations = [self._to_location(face.bounding_box, width, height) for face in faces]
        described = await asyncio.to_thread(
            self._describe_locations, rgb, locations, True, with_descriptors
        )
        return [
            face.model_copy(update={"landmarks": other.landmarks, "descriptor": other.descriptor})
            for face, other in zip(faces, described)
        ]

    @staticmethod
    def _to_rgb(image: np.ndarray) -> np.ndarray:
        if image is None or image.ndim != 3 or image.shape[2] != 3 or image.size == 0:
            raise InvalidImageError(
                "Expected a non-empty BGR image",
                details={"shape": None if image is None else list(image.shape)}
            )
        return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)

    def _locate(self, rgb: np.ndarray, input_size: int) -> List[Location]:
        height, width = rgb.shape[:2]
        scale = min(1.0, input_size / max(height, width))
        small = rgb
        if scale < 1.0:
            small = cv2.resize(rgb, (0, 0), fx=scale, fy=scale, interpolation=cv2.INTER_AREA)

        try:
            small_locations = face_recognition.face_locations(
                small, number_of_times_to_upsample=self.upsample, model="hog"
            )
        except RuntimeError as e:
            raise TransientInferenceError(f"dlib detection failed: {str(e)}")

        return [
            (
                max(0, int(top / scale)),
                min(width, int(right / scale)),
                min(height, int(bottom / scale)),
                max(0, int(left / scale)),
            )
            for top, right, bottom, left in small_locations
        ]

    def _describe_locations(
        self,
        rgb: np.ndarray,
        locations: List[Location],
        with_landmarks: bool,
        with_descriptors: bool,
    ) -> List[FaceDetection]:
        if not locations:
            return []
        height, width = rgb.shape[:2]
        scale = np.array([width, height], dtype=np.float32)

        try:
            landmarks = None
            if with_landmarks or with_descriptors:
                landmarks = face_recognition.face_landmarks(rgb, locations, model=self.landmark_model)
            descriptors = None
            if with_descriptors:
                descriptors = face_recognition.face_encodings(
                    rgb, known_face_locations=locations, model=self.landmark_model
                )
        except RuntimeError as e:
            raise TransientInferenceError(f"dlib landmark/descriptor pass failed: {str(e)}")

        faces = []
        for i, location in enumerate(locations):
            points = None
            if landmarks is not None:
                points = np.array(
                    [point for feature in landmarks[i].values() for point in feature],
                    dtype=np.float32
                ) / scale
            faces.append(FaceDetection(
                bounding_box=self._to_bounding_box(location, width, height),
                landmarks=points,
                descriptor=descriptors[i] if descriptors is not None else None,
            ))

        logger.debug("dlib faces described", faces=len(faces), descriptors=with_descriptors)
        return faces

    @staticmethod
    def _to_bounding_box(location: Location, width: int, height: int) -> BoundingBox:
        top, right, bottom, left = location
        return BoundingBox(
            left=left / width,
            top=top / height,
            width=(right - left) / width,
            height=(bottom - top) / height
        )

    @staticmethod
    def _to_location(box: BoundingBox, width: int, height: int) -> Location:
        left = max(0, int(round(box.left * width)))
        top = max(0, int(round(box.top * height)))
        right = min(width, int(round((box.left + box.width) * width)))
        bottom = min(height, int(round((box.top + box.height) * height)))
        return top, right, bottom, left
