"""Service interfaces package."""
from .media.video_source import VideoSource
from .recognition.face_analyzer import FaceAnalyzer
from .storage.gallery_store import GalleryStore

__all__ = ["FaceAnalyzer", "GalleryStore", "VideoSource"]
