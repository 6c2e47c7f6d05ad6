"""API specific face models."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from facecam.core.session import FaceSession
from facecam.domain.entities.face import BoundingBox, CapturedPhoto, FaceDetection, Identity
from facecam.domain.value_objects.recognition import (
    DetectionSnapshot,
    FaceAttributes,
    RecognitionResult,
    RecognitionSnapshot,
)


class StatusResponse(BaseModel):
    """Session state and the current status line."""
    message: str = Field(..., description="Status line text")
    level: str = Field(..., description="Status level: info, error or success")
    ready: bool = Field(..., description="Whether the face models are loaded")
    webcam_running: bool = Field(..., description="Whether the webcam is delivering frames")
    detection_running: bool = Field(False, description="Whether the detection loop is running")
    recognition_running: bool = Field(False, description="Whether the recognition loop is running")
    hidden: bool = Field(False, description="Whether the page reported itself hidden")
    gallery_size: int = Field(0, description="Number of enrolled identities")
    captured_photos: int = Field(0, description="Photos waiting to be trained")

    @classmethod
    def from_session(cls, session: FaceSession) -> "StatusResponse":
        return cls(
            message=session.status.message,
            level=session.status.level,
            ready=session.is_ready,
            webcam_running=session.webcam_running,
            detection_running=session.detection is not None and session.detection.is_running,
            recognition_running=session.recognition is not None and session.recognition.is_running,
            hidden=session.hidden,
            gallery_size=len(session.gallery),
            captured_photos=len(session.enrollment.photos) if session.enrollment else 0,
        )


class DetectedFace(BaseModel):
    """API model for one face found in a captured photo."""
    bounding_box: BoundingBox = Field(..., description="Normalized face bounding box")
    score: Optional[float] = Field(None, description="Detector confidence, if reported")
    has_descriptor: bool = Field(..., description="Whether a usable descriptor was extracted")
    age: Optional[int] = Field(None, description="Rounded age estimate")
    gender: Optional[str] = Field(None, description="Gender estimate")
    gender_confidence: Optional[int] = Field(None, description="Gender probability in percent")

    @classmethod
    def from_face(cls, face: FaceDetection) -> "DetectedFace":
        return cls(
            bounding_box=face.bounding_box,
            score=face.score,
            has_descriptor=face.descriptor is not None,
            **FaceAttributes.from_face(face).model_dump(),
        )


class CapturedPhotoResponse(BaseModel):
    """API model for a buffered photo."""
    id: str = Field(..., description="Photo token")
    image_data: str = Field(..., description="JPEG data URL")
    assigned_name: str = Field("", description="Name the photo was trained under")
    faces: List[DetectedFace] = Field(..., description="Faces found in the photo")

    @classmethod
    def from_photo(cls, photo: CapturedPhoto) -> "CapturedPhotoResponse":
        return cls(
            id=photo.id,
            image_data=photo.image_data,
            assigned_name=photo.assigned_name,
            faces=[DetectedFace.from_face(face) for face in photo.detections],
        )


class IdentityResponse(BaseModel):
    """API model for an enrolled identity."""
    name: str = Field(..., description="Display name")
    descriptor_count: int = Field(..., description="Number of stored descriptors")
    image_src: str = Field(..., description="Representative photo")
    age: Optional[str] = Field(None, description="Age label, e.g. 'Age: 31'")
    gender: Optional[str] = Field(None, description="Gender label, e.g. 'male (97%)'")
    created_at: datetime = Field(..., description="Enrollment time")

    @classmethod
    def from_identity(cls, identity: Identity) -> "IdentityResponse":
        return cls(
            name=identity.name,
            descriptor_count=len(identity.descriptors),
            image_src=identity.image_src,
            age=identity.age_label,
            gender=identity.gender_label,
            created_at=identity.created_at,
        )


class TrainRequest(BaseModel):
    """Request model for training an identity from the captured photos."""
    name: str = Field(..., description="Name of the person in the captured photos", max_length=100)


class VisibilityRequest(BaseModel):
    """Request model for page visibility changes."""
    hidden: bool = Field(..., description="True when the page is no longer visible")


class DetectionResponse(BaseModel):
    """Latest output of the detection loop."""
    running: bool = Field(..., description="Whether the loop is running")
    face_count: int = Field(0, description="Faces in the last analysed frame")
    summary: str = Field(..., description="Face count text")
    faces: List[FaceAttributes] = Field(default_factory=list, description="Attributes of the labelled faces")

    @classmethod
    def from_snapshot(cls, running: bool, snapshot: DetectionSnapshot) -> "DetectionResponse":
        return cls(
            running=running,
            face_count=snapshot.face_count,
            summary=snapshot.summary,
            faces=snapshot.faces,
        )


class RecognitionResponse(BaseModel):
    """Latest output of the recognition loop."""
    running: bool = Field(..., description="Whether the loop is running")
    face_count: int = Field(0, description="Faces in the last analysed frame")
    summary: str = Field(..., description="Face count text")
    results: List[RecognitionResult] = Field(default_factory=list, description="Per-face recognition results")

    @classmethod
    def from_snapshot(cls, running: bool, snapshot: RecognitionSnapshot) -> "RecognitionResponse":
        return cls(
            running=running,
            face_count=snapshot.face_count,
            summary=snapshot.summary,
            results=snapshot.results,
        )
