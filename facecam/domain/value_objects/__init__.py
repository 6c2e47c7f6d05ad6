"""Value objects package."""
from .recognition import (
    UNKNOWN_LABEL,
    DetectionOptions,
    DetectionSnapshot,
    FaceAttributes,
    MatchResult,
    RecognitionResult,
    RecognitionSnapshot,
    StatusMessage,
)

__all__ = [
    "UNKNOWN_LABEL",
    "DetectionOptions",
    "DetectionSnapshot",
    "FaceAttributes",
    "MatchResult",
    "RecognitionResult",
    "RecognitionSnapshot",
    "StatusMessage",
]
