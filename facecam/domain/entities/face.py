"""Core face domain entities."""
import uuid
from datetime import datetime
from typing import List, Optional, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator


def as_descriptor(value: Union[np.ndarray, list]) -> np.ndarray:
    """Convert a descriptor to an immutable 1-D float32 array."""
    descriptor = np.array(value, dtype=np.float32).reshape(-1)
    descriptor.setflags(write=False)
    return descriptor


class BoundingBox(BaseModel):
    """Face bounding box, normalized to the 0-1 range of the analysed image."""
    left: float = Field(..., description="Left coordinate of the bounding box")
    top: float = Field(..., description="Top coordinate of the bounding box")
    width: float = Field(..., description="Width of the bounding box")
    height: float = Field(..., description="Height of the bounding box")


class FaceDetection(BaseModel):
    """One detected face with whatever capabilities were requested for it."""
    bounding_box: BoundingBox = Field(..., description="Bounding box coordinates")
    score: Optional[float] = Field(None, description="Detector confidence (0-1), if reported")
    landmarks: Optional[np.ndarray] = Field(None, description="Normalized (x, y) landmark points")
    descriptor: Optional[np.ndarray] = Field(None, description="Face descriptor vector")
    age: Optional[float] = Field(None, description="Estimated age in years")
    gender: Optional[str] = Field(None, description="Estimated gender, 'male' or 'female'")
    gender_confidence: Optional[float] = Field(None, description="Gender probability (0-1)")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("descriptor")
    @classmethod
    def validate_descriptor(cls, v: Optional[Union[np.ndarray, list]]) -> Optional[np.ndarray]:
        """Store descriptors as read-only float32 vectors."""
        if v is None:
            return None
        return as_descriptor(v)

    @field_validator("landmarks")
    @classmethod
    def validate_landmarks(cls, v: Optional[Union[np.ndarray, list]]) -> Optional[np.ndarray]:
        if v is None:
            return None
        return np.asarray(v, dtype=np.float32).reshape(-1, 2)

    @property
    def has_attributes(self) -> bool:
        return self.age is not None and bool(self.gender)

    def with_attributes(self, other: "FaceDetection") -> "FaceDetection":
        """Copy age/gender estimates from another detection of the same face."""
        return self.model_copy(update={
            "age": other.age,
            "gender": other.gender,
            "gender_confidence": other.gender_confidence,
        })


class CapturedPhoto(BaseModel):
    """A still frame captured for enrollment, held until the buffer is committed."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique photo token")
    image_data: str = Field(..., description="Encoded image (JPEG data URL)")
    detections: List[FaceDetection] = Field(..., description="Faces found in the photo, in detector order")
    assigned_name: str = Field("", description="Name the photo was enrolled under")


class Identity(BaseModel):
    """A named gallery entry with every descriptor collected for it."""
    name: str = Field(..., description="Display name, non-empty")
    descriptors: List[np.ndarray] = Field(..., description="Face descriptors, at least one")
    image_src: str = Field(..., description="Representative image (first captured photo)")
    age_label: Optional[str] = Field(None, description="Display label such as 'Age: 31'")
    gender_label: Optional[str] = Field(None, description="Display label such as 'male (97%)'")
    created_at: datetime = Field(default_factory=datetime.now, description="Enrollment time")

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    @field_validator("descriptors")
    @classmethod
    def validate_descriptors(cls, v: List[Union[np.ndarray, list]]) -> List[np.ndarray]:
        if not v:
            raise ValueError("An identity needs at least one descriptor")
        return [as_descriptor(d) for d in v]
