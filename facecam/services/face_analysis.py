"""Runs the collaborator passes for one frame and aligns their results."""
from typing import List, Sequence

import numpy as np

from facecam.core.exceptions import TransientInferenceError
from facecam.core.logging import get_logger
from facecam.domain.entities.face import FaceDetection
from facecam.domain.interfaces.recognition.face_analyzer import FaceAnalyzer
from facecam.domain.value_objects.recognition import DetectionOptions

logger = get_logger(__name__)


def merge_by_position(
    described: Sequence[FaceDetection],
    attributed: Sequence[FaceDetection],
) -> List[FaceDetection]:
    """Attach the age/gender pass to the descriptor pass, face by face.

    Both passes ran over the same still frame, so the detector returns faces
    in the same order. When the counts differ the pairing is meaningless and
    the frame is rejected.

    Raises:
        TransientInferenceError: If the passes found a different number of faces
    """
    if len(described) != len(attributed):
        raise TransientInferenceError(
            "Detection passes disagree on the number of faces",
            details={"descriptor_faces": len(described), "attribute_faces": len(attributed)}
        )
    return [face.with_attributes(other) for face, other in zip(described, attributed)]


async def analyze_faces(
    analyzer: FaceAnalyzer,
    image: np.ndarray,
    options: DetectionOptions,
    *,
    with_descriptors: bool = False,
    with_age_gender: bool = False,
) -> List[FaceDetection]:
    """Detect faces with descriptors and/or age-gender estimates.

    Uses one combined call when the analyzer supports it. Otherwise the
    descriptor pass and the age/gender pass are issued one after the other
    and merged by position.

    Args:
        analyzer: Inference collaborator
        image: BGR frame
        options: Detector options
        with_descriptors: Request landmarks and descriptors
        with_age_gender: Request age and gender

    Returns:
        Faces in detector order

    Raises:
        TransientInferenceError: If the two passes cannot be aligned
    """
    if not (with_descriptors and with_age_gender) or analyzer.supports_combined_analysis:
        return await analyzer.detect_faces(
            image,
            options,
            with_landmarks=with_descriptors,
            with_descriptors=with_descriptors,
            with_age_gender=with_age_gender,
        )

    described = await analyzer.detect_faces(
        image, options, with_landmarks=True, with_descriptors=True
    )
    if not described:
        return []
    attributed = await analyzer.detect_faces(image, options, with_age_gender=True)

    logger.debug(
        "Merging detection passes",
        descriptor_faces=len(described),
        attribute_faces=len(attributed)
    )
    return merge_by_position(described, attributed)
