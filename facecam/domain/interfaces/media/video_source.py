"""Video source interface."""
from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np


class VideoSource(ABC):
    """Interface for a live camera feed."""

    @property
    @abstractmethod
    def is_playing(self) -> bool:
        """True while started and neither paused nor ended."""
        pass

    @property
    @abstractmethod
    def frame_size(self) -> Optional[Tuple[int, int]]:
        """(width, height) of the delivered frames, or None when stopped."""
        pass

    @abstractmethod
    async def start(self) -> None:
        """
        Open the camera and wait until it delivers frames.

        Raises:
            MediaAccessError: If the device cannot be opened or stays silent
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Release the camera. Safe to call when already stopped."""
        pass

    @abstractmethod
    async def read_frame(self) -> Optional[np.ndarray]:
        """Return the current BGR frame, or None when not playing."""
        pass
