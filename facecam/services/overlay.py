"""Overlay render surface shared by the live loops."""
from typing import Dict, List, Literal, Optional, Sequence, Tuple

import cv2
import numpy as np
from pydantic import BaseModel, Field

from facecam.core.logging import get_logger
from facecam.domain.entities.face import BoundingBox, FaceDetection
from facecam.domain.value_objects.recognition import FaceAttributes, RecognitionResult

logger = get_logger(__name__)

LabelStyle = Literal["info", "recognized", "unknown"]

# BGR
BOX_COLOR = (255, 128, 0)
LABEL_BACKGROUND = {
    "info": (0, 0, 0),
    "recognized": (80, 175, 76),
    "unknown": (34, 87, 255),
}
TEXT_COLOR = (255, 255, 255)


class OverlayLabel(BaseModel):
    """Text drawn next to a face box."""
    text: str = Field(..., description="Label text")
    position: Literal["above", "below"] = Field("above", description="Side of the box")
    style: LabelStyle = Field("info", description="Background style")


class OverlayAnnotation(BaseModel):
    """A face box with its labels."""
    bounding_box: BoundingBox = Field(..., description="Normalized box")
    score: Optional[float] = Field(None, description="Detector score shown with the box")
    labels: List[OverlayLabel] = Field(default_factory=list, description="Labels for this face")


def detection_annotations(faces: Sequence[FaceDetection], max_labels: int) -> List[OverlayAnnotation]:
    """Boxes for every face, age/gender labels for the first `max_labels`."""
    annotations = []
    for index, face in enumerate(faces):
        labels = []
        text = FaceAttributes.from_face(face).describe() if index < max_labels else None
        if text:
            labels.append(OverlayLabel(text=text, position="below", style="info"))
        annotations.append(OverlayAnnotation(bounding_box=face.bounding_box, score=face.score, labels=labels))
    return annotations


def recognition_annotations(
    faces: Sequence[FaceDetection],
    results: Dict[int, RecognitionResult],
) -> List[OverlayAnnotation]:
    """Boxes for every face, name and attribute labels for the matched ones.

    Args:
        faces: All faces in the frame
        results: Recognition result keyed by the face's position in `faces`
    """
    annotations = []
    for index, face in enumerate(faces):
        labels = []
        result = results.get(index)
        if result is not None:
            name = result.label if result.recognized else "Unknown"
            labels.append(OverlayLabel(
                text=f"{name} ({result.confidence:.1f}%)",
                position="above",
                style="recognized" if result.recognized else "unknown",
            ))
            text = result.describe()
            if text:
                labels.append(OverlayLabel(text=text, position="below", style="info"))
        annotations.append(OverlayAnnotation(bounding_box=face.bounding_box, score=face.score, labels=labels))
    return annotations


class OverlaySurface:
    """Single drawing surface on top of the video.

    The surface is attached with the video frame size when the webcam starts
    and detached when it stops. Drawing on a detached surface is ignored, so a
    loop tick that finishes after the webcam was stopped cannot paint stale
    results.
    """

    def __init__(self) -> None:
        self._size: Optional[Tuple[int, int]] = None
        self._annotations: List[OverlayAnnotation] = []

    @property
    def size(self) -> Optional[Tuple[int, int]]:
        return self._size

    @property
    def is_attached(self) -> bool:
        return self._size is not None

    @property
    def annotations(self) -> Tuple[OverlayAnnotation, ...]:
        return tuple(self._annotations)

    def attach(self, width: int, height: int) -> None:
        self._size = (width, height)
        self._annotations = []
        logger.debug("Overlay attached", width=width, height=height)

    def detach(self) -> None:
        self._size = None
        self._annotations = []

    def clear(self) -> None:
        self._annotations = []

    def draw(self, annotations: Sequence[OverlayAnnotation]) -> bool:
        """Replace the current annotations.

        Returns:
            False when the surface is detached and nothing was drawn
        """
        if not self.is_attached:
            logger.debug("Ignoring draw on detached overlay", annotations=len(annotations))
            return False
        self._annotations = list(annotations)
        return True

    def compose(self, frame: np.ndarray) -> np.ndarray:
        """Return a copy of `frame` with the current annotations drawn on it."""
        img_draw = frame.copy()
        height, width = img_draw.shape[:2]

        for annotation in self._annotations:
            bbox = annotation.bounding_box
            x1 = int(bbox.left * width)
            y1 = int(bbox.top * height)
            x2 = int((bbox.left + bbox.width) * width)
            y2 = int((bbox.top + bbox.height) * height)
            cv2.rectangle(img_draw, (x1, y1), (x2, y2), BOX_COLOR, 2)

            if annotation.score is not None:
                cv2.putText(
                    img_draw, f"{annotation.score:.2f}", (x1 + 2, y2 - 4),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.4, BOX_COLOR, 1
                )

            for label in annotation.labels:
                anchor_y = y1 - 10 if label.position == "above" else y2 + 20
                self._draw_label(img_draw, label, x1, anchor_y)

        return img_draw

    @staticmethod
    def _draw_label(img: np.ndarray, label: OverlayLabel, x: int, y: int) -> None:
        font_scale = 0.5
        thickness = 1
        padding = 5
        (text_width, text_height), _ = cv2.getTextSize(
            label.text, cv2.FONT_HERSHEY_SIMPLEX, font_scale, thickness
        )
        cv2.rectangle(
            img,
            (x - padding, y - text_height - padding),
            (x + text_width + padding, y + padding),
            LABEL_BACKGROUND[label.style],
            -1
        )
        cv2.putText(
            img, label.text, (x, y),
            cv2.FONT_HERSHEY_SIMPLEX, font_scale, TEXT_COLOR, thickness
        )
