"""Custom exceptions for the webcam face service."""
from typing import Optional


class FaceRecognitionError(Exception):
    """Base exception for face recognition operations."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize face recognition error.

        Args:
            message: Error description
            details: Additional error context
        """
        super().__init__(message)
        self.details = details or {}


class StartupError(FaceRecognitionError):
    """Raised when the inference models fail to load. Fatal for the session."""
    pass


class MediaAccessError(FaceRecognitionError):
    """Raised when the camera cannot be opened or never delivers a frame."""
    pass


class WebcamNotStartedError(FaceRecognitionError):
    """Raised when an action needs a playing webcam and there is none."""
    pass


class InvalidImageError(FaceRecognitionError):
    """Raised when the provided image is invalid or cannot be processed."""
    pass


class NoFaceDetectedError(FaceRecognitionError):
    """Raised when no face is detected in a captured photo."""
    pass


class NoFaceDescriptorError(FaceRecognitionError):
    """Raised when enrollment finds no usable face descriptor."""
    pass


class NoPhotosCapturedError(NoFaceDescriptorError):
    """Raised when enrollment is attempted with an empty photo buffer."""
    pass


class InvalidNameError(FaceRecognitionError):
    """Raised when an identity name is empty after trimming."""
    pass


class NoGalleryError(FaceRecognitionError):
    """Raised when recognition is started without any enrolled identity."""
    pass


class IndexOutOfRangeError(FaceRecognitionError):
    """Raised when removing a gallery entry or photo at an invalid index."""
    pass


class PersistenceCorruptionError(FaceRecognitionError):
    """Raised when the stored gallery record cannot be deserialized."""
    pass


class GalleryStorageError(FaceRecognitionError):
    """Raised when the gallery record cannot be written or removed."""
    pass


class TransientInferenceError(FaceRecognitionError):
    """Raised when a single frame cannot be analysed; the caller skips the frame."""
    pass
