"""Self-paced background loop over the live video."""
import asyncio
import contextlib
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from facecam.core.config import settings
from facecam.core.exceptions import TransientInferenceError
from facecam.core.logging import get_logger
from facecam.domain.interfaces.media.video_source import VideoSource
from facecam.services.overlay import OverlaySurface

logger = get_logger(__name__)


class LiveLoop(ABC):
    """Background task that analyses the current video frame at a fixed cadence.

    Ticks never overlap: the next one is scheduled only after the previous one
    finished, waiting whatever is left of the interval. A tick that raises is
    logged and the loop carries on with the next frame.

    Subclasses implement `process` and must check `is_running` after every
    await before publishing results, since `stop` can run while a tick is
    waiting on inference.
    """

    name = "live"

    def __init__(
        self,
        video: VideoSource,
        surface: OverlaySurface,
        interval: Optional[float] = None,
    ) -> None:
        self._video = video
        self._surface = surface
        self.interval = settings.LIVE_INTERVAL_SECONDS if interval is None else interval
        self._task: Optional[asyncio.Task] = None
        self._running = False
        self.ticks = 0

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> bool:
        """Schedule the loop on the running event loop.

        Returns:
            False if the loop was already running
        """
        if self._running:
            logger.debug("Live loop already running", loop=self.name)
            return False

        self._running = True
        self.ticks = 0
        self._task = asyncio.create_task(self._run(), name=f"{self.name}-loop")
        logger.info("Live loop started", loop=self.name, interval=self.interval)
        return True

    async def stop(self) -> bool:
        """Cancel the loop, wait for it to finish and clear its output.

        Returns:
            False if the loop was not running
        """
        if not self._running:
            return False

        self._running = False
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        if self._running:
            # Restarted while the old task was winding down; its output is live
            logger.info("Live loop restarted during stop", loop=self.name)
            return True

        self._surface.clear()
        self._reset()
        logger.info("Live loop stopped", loop=self.name, ticks=self.ticks)
        return True

    async def tick(self) -> None:
        """Run one iteration over the current frame."""
        if not self._video.is_playing:
            return
        frame = await self._video.read_frame()
        if frame is None or not self._running:
            return
        await self.process(frame)

    @abstractmethod
    async def process(self, frame: np.ndarray) -> None:
        """Analyse one frame and publish the results."""
        pass

    def _reset(self) -> None:
        """Drop the latest published results."""
        pass

    async def _run(self) -> None:
        event_loop = asyncio.get_running_loop()
        while self._running:
            started = event_loop.time()
            try:
                await self.tick()
            except TransientInferenceError as e:
                logger.warning("Skipping frame", loop=self.name, error=str(e), **e.details)
            except Exception as e:
                logger.error("Live loop tick failed", loop=self.name, error=str(e), exc_info=True)
            self.ticks += 1

            elapsed = event_loop.time() - started
            await asyncio.sleep(max(0.0, self.interval - elapsed))
