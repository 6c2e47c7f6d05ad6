"""Face analyzer interface."""
from abc import ABC, abstractmethod
from typing import List

import numpy as np

from ...entities.face import FaceDetection
from ...value_objects.recognition import DetectionOptions


class FaceAnalyzer(ABC):
    """Interface for the pre-trained inference collaborator.

    Implementations wrap a detection library and attach the requested
    capabilities (landmarks, descriptors, age/gender) to each detected face.
    Faces are returned in detector order.
    """

    @property
    def supports_combined_analysis(self) -> bool:
        """Whether descriptors and age/gender can be requested in one call."""
        return False

    @property
    @abstractmethod
    def descriptor_size(self) -> int:
        """Length of the descriptors this analyzer attaches to faces."""
        pass

    @abstractmethod
    def load(self) -> None:
        """
        Load model artifacts. Blocking; called once from a worker thread.

        Raises:
            Exception: Any load failure; the caller turns it into StartupError
        """
        pass

    @abstractmethod
    async def detect_faces(
        self,
        image: np.ndarray,
        options: DetectionOptions,
        *,
        with_landmarks: bool = False,
        with_descriptors: bool = False,
        with_age_gender: bool = False,
    ) -> List[FaceDetection]:
        """
        Detect faces in a BGR image.

        Args:
            image: Decoded frame (BGR, HxWx3)
            options: Detector input size and score threshold
            with_landmarks: Attach facial landmarks
            with_descriptors: Attach face descriptors (implies landmarks)
            with_age_gender: Attach age and gender estimates

        Returns:
            Detected faces with normalized bounding boxes; empty list when none

        Raises:
            InvalidImageError: If the image cannot be processed
            TransientInferenceError: If inference fails for this frame
        """
        pass
