"""Analyzer construction and bounded model loading."""
import asyncio
import threading
from typing import List, Optional

from facecam.core.config import settings
from facecam.core.exceptions import StartupError
from facecam.core.logging import get_logger
from facecam.domain.interfaces.recognition.face_analyzer import FaceAnalyzer

logger = get_logger(__name__)

BACKENDS = ("composite", "insightface")


def build_analyzer(backend: Optional[str] = None) -> FaceAnalyzer:
    """Create the configured analyzer without loading its models.

    Backend modules are imported here so the inference libraries are only
    required when an analyzer is actually built.

    Raises:
        StartupError: If the backend name is unknown or its library is missing
    """
    backend = (backend or settings.ANALYZER_BACKEND).lower()
    if backend not in BACKENDS:
        raise StartupError(
            f"Unknown analyzer backend '{backend}'",
            details={"supported": list(BACKENDS)}
        )

    try:
        from facecam.services.recognition.insight_face import InsightFaceAnalyzer
        if backend == "insightface":
            return InsightFaceAnalyzer()

        from facecam.services.recognition.composite import CompositeFaceAnalyzer
        from facecam.services.recognition.dlib_face import DlibFaceAnalyzer
        return CompositeFaceAnalyzer(InsightFaceAnalyzer(), DlibFaceAnalyzer())
    except ImportError as e:
        raise StartupError(
            f"Inference library not installed: {str(e)}",
            details={"backend": backend}
        )


class ModelLoader:
    """Loads analyzer models in a worker thread with a bounded wait.

    The event loop keeps serving while the thread runs; the loader checks for
    completion every `poll_interval` seconds and gives up after `max_polls`.

    Example:
        ```python
        analyzer = await ModelLoader(build_analyzer()).load()
        ```
    """

    def __init__(
        self,
        analyzer: FaceAnalyzer,
        max_polls: Optional[int] = None,
        poll_interval: Optional[float] = None,
    ) -> None:
        self.analyzer = analyzer
        self.max_polls = settings.MODEL_LOAD_MAX_POLLS if max_polls is None else max_polls
        self.poll_interval = settings.MODEL_LOAD_POLL_INTERVAL if poll_interval is None else poll_interval

    async def load(self) -> FaceAnalyzer:
        """Load the models and return the ready analyzer.

        Raises:
            StartupError: If loading fails or does not finish in time
        """
        done = threading.Event()
        errors: List[Exception] = []

        def target() -> None:
            try:
                self.analyzer.load()
            except Exception as e:
                errors.append(e)
            finally:
                done.set()

        logger.info(
            "Loading face models",
            analyzer=type(self.analyzer).__name__,
            max_wait=self.max_polls * self.poll_interval
        )
        threading.Thread(target=target, name="model-loader", daemon=True).start()

        polls = 0
        while not done.is_set():
            if polls >= self.max_polls:
                logger.error("Timed out loading face models", polls=polls)
                raise StartupError(
                    "Face models did not load in time",
                    details={"polls": polls, "poll_interval": self.poll_interval}
                )
            await asyncio.sleep(self.poll_interval)
            polls += 1

        if errors:
            logger.error("Failed to load face models", error=str(errors[0]))
            raise StartupError(f"Failed to load face models: {str(errors[0])}") from errors[0]

        logger.info("Face models loaded", polls=polls)
        return self.analyzer
