"""Enrollment pipeline: capture photos into a buffer, then commit them as an identity."""
from typing import List, Optional, Tuple

import numpy as np

from facecam.core.config import settings
from facecam.core.exceptions import IndexOutOfRangeError, NoFaceDetectedError
from facecam.core.logging import get_logger
from facecam.core.utils.image import to_data_url
from facecam.domain.entities.face import CapturedPhoto, Identity
from facecam.domain.interfaces.recognition.face_analyzer import FaceAnalyzer
from facecam.domain.value_objects.recognition import DetectionOptions
from facecam.services.face_analysis import analyze_faces
from facecam.services.gallery import FaceGallery

logger = get_logger(__name__)


class EnrollmentService:
    """Service for turning captured webcam photos into gallery identities.

    Each capture runs the descriptor pass and the age/gender pass over the
    still frame and keeps the photo, with every detected face, in an in-memory
    buffer. Committing hands the whole buffer to the gallery under one name.

    Example:
        ```python
        enrollment = EnrollmentService(analyzer, gallery)

        await enrollment.capture(frame)
        await enrollment.capture(another_frame)
        identity = enrollment.commit("Alice")
        ```
    """

    def __init__(
        self,
        analyzer: FaceAnalyzer,
        gallery: FaceGallery,
        options: Optional[DetectionOptions] = None,
        jpeg_quality: Optional[int] = None,
    ) -> None:
        """Initialize the enrollment service.

        Args:
            analyzer: Inference collaborator for detection and descriptors
            gallery: Gallery that receives committed identities
            options: Detector options for still captures
            jpeg_quality: Quality of the stored photo encoding
        """
        self._analyzer = analyzer
        self._gallery = gallery
        self._options = options or DetectionOptions(
            input_size=settings.CAPTURE_INPUT_SIZE,
            score_threshold=settings.CAPTURE_SCORE_THRESHOLD,
        )
        self._jpeg_quality = jpeg_quality or settings.CAPTURE_JPEG_QUALITY
        self._photos: List[CapturedPhoto] = []

    @property
    def photos(self) -> Tuple[CapturedPhoto, ...]:
        return tuple(self._photos)

    async def capture(self, image: np.ndarray) -> CapturedPhoto:
        """Analyse a still frame and add it to the buffer.

        Args:
            image: BGR frame grabbed from the video source

        Returns:
            The buffered CapturedPhoto with all detected faces

        Raises:
            NoFaceDetectedError: If the frame contains no face; nothing is buffered
            TransientInferenceError: If the detection passes cannot be aligned
        """
        faces = await analyze_faces(
            self._analyzer,
            image,
            self._options,
            with_descriptors=True,
            with_age_gender=True,
        )
        if not faces:
            logger.info("No faces detected in captured photo")
            raise NoFaceDetectedError("No faces detected in the photo. Please try again.")

        photo = CapturedPhoto(
            image_data=to_data_url(image, self._jpeg_quality),
            detections=faces,
        )
        self._photos.append(photo)

        logger.info(
            "Photo captured",
            photo_id=photo.id,
            faces=len(faces),
            buffered_photos=len(self._photos)
        )
        return photo

    def remove_photo(self, index: int) -> CapturedPhoto:
        """Drop a buffered photo before it is committed.

        Raises:
            IndexOutOfRangeError: If the index is not a valid position
        """
        if not 0 <= index < len(self._photos):
            raise IndexOutOfRangeError(
                f"No captured photo at index {index}",
                details={"index": index, "size": len(self._photos)}
            )
        photo = self._photos.pop(index)
        logger.debug("Captured photo removed", photo_id=photo.id, buffered_photos=len(self._photos))
        return photo

    def commit(self, name: str) -> Identity:
        """Enroll every buffered photo under `name` and empty the buffer.

        The buffer is kept intact when enrollment fails.

        Raises:
            InvalidNameError: If the name is empty after trimming
            NoFaceDescriptorError: If the buffer holds no usable descriptor
            GalleryStorageError: If the gallery cannot be persisted
        """
        photos = list(self._photos)
        identity = self._gallery.enroll(name, photos)

        for photo in photos:
            photo.assigned_name = identity.name
        self.clear()
        return identity

    def clear(self) -> None:
        self._photos.clear()
