"""Face recognition value objects."""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from facecam.domain.entities.face import FaceDetection

UNKNOWN_LABEL = "unknown"


class DetectionOptions(BaseModel):
    """Detector options passed with every collaborator call."""
    input_size: int = Field(..., description="Detector working resolution", gt=0)
    score_threshold: float = Field(..., description="Minimum detection score", ge=0.0, le=1.0)

    model_config = ConfigDict(frozen=True)


class MatchResult(BaseModel):
    """Best gallery match for one descriptor."""
    label: str = Field(..., description="Identity name, or 'unknown'")
    distance: float = Field(..., description="Euclidean distance to the nearest stored descriptor")
    threshold: float = Field(..., description="Distance threshold used for the decision")

    @property
    def recognized(self) -> bool:
        return self.distance < self.threshold


class FaceAttributes(BaseModel):
    """Display-ready age/gender estimate for one face."""
    age: Optional[int] = Field(None, description="Rounded age in years")
    gender: Optional[str] = Field(None, description="Estimated gender")
    gender_confidence: Optional[int] = Field(None, description="Gender probability in percent")

    @classmethod
    def from_face(cls, face: FaceDetection) -> "FaceAttributes":
        return cls(
            age=round(face.age) if face.age is not None else None,
            gender=face.gender,
            gender_confidence=(
                round(face.gender_confidence * 100)
                if face.gender_confidence is not None else None
            ),
        )

    def describe(self) -> Optional[str]:
        """Text such as 'male (97%) - Age: 31', or None without an estimate."""
        if self.age is None or not self.gender:
            return None
        gender = self.gender
        if self.gender_confidence is not None:
            gender = f"{gender} ({self.gender_confidence}%)"
        return f"{gender} - Age: {self.age}"


class RecognitionResult(FaceAttributes):
    """Recognition outcome for one face in a live frame."""
    label: str = Field(..., description="Matched identity name, or 'unknown'")
    distance: float = Field(..., description="Distance to the nearest stored descriptor")
    threshold: float = Field(..., description="Distance threshold")
    recognized: bool = Field(..., description="Whether distance < threshold")
    confidence: float = Field(..., description="max(0, 1 - distance) as a percentage")

    @classmethod
    def from_match(cls, match: MatchResult, face: FaceDetection) -> "RecognitionResult":
        attributes = FaceAttributes.from_face(face)
        return cls(
            label=match.label,
            distance=match.distance,
            threshold=match.threshold,
            recognized=match.recognized,
            confidence=max(0.0, (1.0 - match.distance) * 100),
            **attributes.model_dump(),
        )


def _face_count_summary(face_count: int) -> str:
    if face_count == 0:
        return "No faces detected"
    return f"Faces detected: {face_count}"


class DetectionSnapshot(BaseModel):
    """Latest output of the live detection loop."""
    face_count: int = Field(0, description="Number of faces in the frame")
    faces: List[FaceAttributes] = Field(default_factory=list, description="Attributes of the capped faces")

    @property
    def summary(self) -> str:
        return _face_count_summary(self.face_count)


class RecognitionSnapshot(BaseModel):
    """Latest output of the live recognition loop."""
    face_count: int = Field(0, description="Number of faces in the frame")
    results: List[RecognitionResult] = Field(default_factory=list, description="Results for the capped faces")

    @property
    def summary(self) -> str:
        return _face_count_summary(self.face_count)


class StatusMessage(BaseModel):
    """User-visible status line."""
    message: str = Field(..., description="Status text")
    level: Literal["info", "error", "success"] = Field("info", description="Severity")
