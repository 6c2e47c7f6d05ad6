"""Session object owning every component behind the user actions."""
import contextlib
from typing import Iterator, Optional

import numpy as np

from facecam.core.exceptions import (
    FaceRecognitionError,
    NoGalleryError,
    StartupError,
    WebcamNotStartedError,
)
from facecam.core.logging import get_logger
from facecam.core.utils.image import encode_jpeg
from facecam.domain.entities.face import CapturedPhoto, Identity
from facecam.domain.interfaces.media.video_source import VideoSource
from facecam.domain.interfaces.recognition.face_analyzer import FaceAnalyzer
from facecam.domain.interfaces.storage.gallery_store import GalleryStore
from facecam.domain.value_objects.recognition import StatusMessage
from facecam.services.enrollment import EnrollmentService
from facecam.services.gallery import FaceGallery
from facecam.services.live.detection import DetectionLoop
from facecam.services.live.recognition import RecognitionLoop
from facecam.services.overlay import OverlaySurface
from facecam.services.recognition.loader import ModelLoader, build_analyzer

logger = get_logger(__name__)


class FaceSession:
    """Container for one user's webcam session.

    Owns the analyzer, the video source, the gallery, the enrollment buffer,
    the overlay and both live loops, and keeps the status line current. Every
    action reports its outcome on the status line; failing actions also
    re-raise, leaving the session state as it was.

    Example:
        ```python
        session = FaceSession(video=WebcamSource(), store=JsonFileGalleryStore())
        await session.initialize()

        await session.start_webcam()
        await session.capture_photo()
        session.train("Alice")
        await session.start_recognition()
        ```
    """

    def __init__(
        self,
        video: VideoSource,
        store: GalleryStore,
        analyzer: Optional[FaceAnalyzer] = None,
        loader: Optional[ModelLoader] = None,
    ) -> None:
        """Initialize an unloaded session.

        Args:
            video: Live camera feed
            store: Backend for the persisted gallery
            analyzer: Inference collaborator, built from settings when omitted
            loader: Model loader, created for the analyzer when omitted
        """
        self.video = video
        self.gallery = FaceGallery(store)
        self.surface = OverlaySurface()
        self.analyzer = analyzer
        self._loader = loader

        self.enrollment: Optional[EnrollmentService] = None
        self.detection: Optional[DetectionLoop] = None
        self.recognition: Optional[RecognitionLoop] = None

        self.startup_error: Optional[StartupError] = None
        self.hidden = False
        self.status = StatusMessage(message="Loading face recognition models...")

    @property
    def is_ready(self) -> bool:
        return self.startup_error is None and self.enrollment is not None

    @property
    def webcam_running(self) -> bool:
        return self.video.is_playing

    def set_status(self, message: str, level: str = "info") -> StatusMessage:
        self.status = StatusMessage(message=message, level=level)
        log = logger.warning if level == "error" else logger.info
        log("Status updated", status=message, level=level)
        return self.status

    @contextlib.contextmanager
    def _reporting(self, prefix: str = "") -> Iterator[None]:
        try:
            yield
        except FaceRecognitionError as e:
            self.set_status(f"{prefix}{str(e)}", "error")
            raise

    def _require_ready(self) -> None:
        if self.startup_error is not None:
            raise self.startup_error
        if not self.is_ready:
            raise StartupError("Face recognition models are not loaded yet")

    def _require_webcam(self) -> None:
        if not self.video.is_playing:
            raise WebcamNotStartedError("Please start webcam first.")

    async def initialize(self) -> None:
        """Load the stored gallery and the inference models.

        The gallery takes its descriptor length from the analyzer; stored
        descriptors of another length are discarded as corrupt.

        Raises:
            StartupError: If the models cannot be loaded; the session stays blocked
        """
        self.set_status("Loading face recognition models...")

        try:
            analyzer = self.analyzer or build_analyzer()
            self.gallery.descriptor_size = analyzer.descriptor_size
            self.gallery.load()

            loader = self._loader or ModelLoader(analyzer)
            self.analyzer = await loader.load()
        except StartupError as e:
            self.startup_error = e
            self.set_status(
                f"Error loading models: {str(e)}. Please check if models are in the correct location.",
                "error"
            )
            raise

        self.enrollment = EnrollmentService(self.analyzer, self.gallery)
        self.detection = DetectionLoop(self.analyzer, self.video, self.surface)
        self.recognition = RecognitionLoop(self.analyzer, self.gallery, self.video, self.surface)

        self.set_status('Models loaded successfully! Click "Start Webcam" to begin.', "success")
        logger.info("Face session initialized", identities=len(self.gallery))

    async def shutdown(self) -> None:
        """Stop loops and release the camera."""
        await self._stop_loops()
        self.video.stop()
        self.surface.detach()
        logger.info("Face session shut down")

    async def start_webcam(self) -> None:
        with self._reporting("Error starting webcam: "):
            self._require_ready()
            self.set_status("Starting webcam...")
            await self.video.start()

            width, height = self.video.frame_size
            self.surface.attach(width, height)
        self.set_status('Webcam started! Click "Start Detection" to begin face detection.', "success")

    async def stop_webcam(self) -> None:
        await self._stop_loops()
        self.video.stop()
        self.surface.detach()
        self.set_status('Webcam stopped. Click "Start Webcam" to begin again.')

    async def toggle_detection(self) -> bool:
        """Start the detection loop, or stop it if it is running.

        Returns:
            True if detection is now running
        """
        with self._reporting():
            self._require_ready()
            if self.detection.is_running:
                await self.detection.stop()
                self.set_status("Face detection stopped.")
                return False

            self._require_webcam()
            await self.recognition.stop()
            self.detection.start()
        self.set_status("Face detection started!", "success")
        return True

    async def capture_photo(self) -> CapturedPhoto:
        with self._reporting():
            self._require_ready()
            self._require_webcam()
            frame = await self.video.read_frame()
            if frame is None:
                raise WebcamNotStartedError("Please start webcam first.")
            photo = await self.enrollment.capture(frame)

        self.set_status(
            f'Photo captured! {len(photo.detections)} face(s) detected. '
            'Enter a name and click "Train Recognition".',
            "success"
        )
        return photo

    def remove_captured_photo(self, index: int) -> CapturedPhoto:
        with self._reporting():
            self._require_ready()
            photo = self.enrollment.remove_photo(index)
        self.set_status("Photo removed.")
        return photo

    def train(self, name: str) -> Identity:
        """Enroll the captured photos under `name`."""
        with self._reporting():
            self._require_ready()
            identity = self.enrollment.commit(name)
        self.set_status(f"Successfully trained face recognition for {identity.name}!", "success")
        return identity

    async def start_recognition(self) -> bool:
        """Start the recognition loop; detection is stopped first.

        Returns:
            False if recognition was already running
        """
        with self._reporting():
            self._require_ready()
            self._require_webcam()
            if self.recognition.is_running:
                return False
            if self.gallery.is_empty:
                raise NoGalleryError("No trained faces available. Please train some faces first.")
            await self.detection.stop()
            self.recognition.start()
        self.set_status("Face recognition started!", "success")
        return True

    async def stop_recognition(self) -> bool:
        self._require_ready()
        stopped = await self.recognition.stop()
        self.set_status("Face recognition stopped.")
        return stopped

    def remove_identity(self, index: int) -> Identity:
        with self._reporting():
            removed = self.gallery.remove(index)
        self.set_status("Face removed successfully.", "success")
        return removed

    def clear_gallery(self) -> None:
        with self._reporting():
            self.gallery.clear()
        self.set_status("All data cleared successfully.", "success")

    async def set_hidden(self, hidden: bool) -> None:
        """Record page visibility; hiding the page stops both loops."""
        self.hidden = hidden
        if hidden and await self._stop_loops():
            self.set_status("Paused while the page is hidden.")

    async def render_frame(self) -> bytes:
        """Current frame with the overlay drawn on it, JPEG encoded."""
        self._require_webcam()
        frame = await self.video.read_frame()
        if frame is None:
            raise WebcamNotStartedError("Please start webcam first.")
        return encode_jpeg(self.compose(frame))

    def compose(self, frame: np.ndarray) -> np.ndarray:
        return self.surface.compose(frame)

    async def _stop_loops(self) -> bool:
        stopped = False
        for loop in (self.detection, self.recognition):
            if loop is not None and await loop.stop():
                stopped = True
        return stopped
