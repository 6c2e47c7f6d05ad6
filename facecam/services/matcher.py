"""Nearest-neighbour face matcher built from a gallery snapshot."""
import math
from typing import List, Optional, Sequence

import numpy as np

from facecam.core.config import settings
from facecam.core.logging import get_logger
from facecam.domain.entities.face import Identity
from facecam.domain.value_objects.recognition import UNKNOWN_LABEL, MatchResult

logger = get_logger(__name__)


class FaceMatcher:
    """Labels a query descriptor with the closest stored descriptor's identity.

    Every descriptor of every identity is an independent comparison point, so
    an identity enrolled from five photos contributes five points rather than a
    centroid. The matcher is read-only; gallery changes produce a new instance.

    Example:
        ```python
        matcher = FaceMatcher.build(gallery.identities, threshold=0.6)
        result = matcher.match(face.descriptor)
        if result.recognized:
            print(result.label, result.distance)
        ```
    """

    def __init__(self, labels: Sequence[str], points: np.ndarray, threshold: float) -> None:
        """Initialize the matcher.

        Args:
            labels: Identity name for each row of `points`
            points: Stored descriptors, shape (N, D)
            threshold: Distances strictly below this are recognized
        """
        if len(labels) != len(points):
            raise ValueError("Every indexed descriptor needs exactly one label")
        self._labels: List[str] = list(labels)
        self._points = np.asarray(points, dtype=np.float64)
        self._points.setflags(write=False)
        self.threshold = threshold

    @classmethod
    def build(cls, identities: Sequence[Identity], threshold: Optional[float] = None) -> "FaceMatcher":
        """Index every descriptor of every identity in gallery order.

        Args:
            identities: Gallery snapshot
            threshold: Recognition threshold, defaults to settings.MATCH_THRESHOLD

        Returns:
            A FaceMatcher, or a NullFaceMatcher for an empty gallery
        """
        threshold = settings.MATCH_THRESHOLD if threshold is None else threshold
        if not identities:
            return NullFaceMatcher(threshold)

        labels = [identity.name for identity in identities for _ in identity.descriptors]
        points = np.stack([d for identity in identities for d in identity.descriptors])

        logger.debug(
            "Built face matcher",
            identities=len(identities),
            descriptors=len(labels),
            threshold=threshold
        )
        return cls(labels, points, threshold)

    @property
    def is_empty(self) -> bool:
        return not self._labels

    def __len__(self) -> int:
        return len(self._labels)

    def match(self, descriptor: np.ndarray) -> MatchResult:
        """Find the closest stored descriptor.

        Ties resolve to the first point in gallery insertion order.

        Args:
            descriptor: Query face descriptor

        Returns:
            MatchResult with the owning identity's name when the minimum distance
            is strictly below the threshold, otherwise 'unknown' with that distance
        """
        query = np.asarray(descriptor, dtype=np.float64).reshape(-1)
        if query.shape[0] != self._points.shape[1]:
            raise ValueError(
                f"Descriptor length {query.shape[0]} does not match gallery length {self._points.shape[1]}"
            )

        distances = np.linalg.norm(self._points - query, axis=1)
        best = int(np.argmin(distances))
        distance = float(distances[best])

        label = self._labels[best] if distance < self.threshold else UNKNOWN_LABEL
        return MatchResult(label=label, distance=distance, threshold=self.threshold)


class NullFaceMatcher(FaceMatcher):
    """Matcher for an empty gallery: every query is unknown."""

    def __init__(self, threshold: Optional[float] = None) -> None:
        self._labels = []
        self._points = np.empty((0, 0), dtype=np.float64)
        self.threshold = settings.MATCH_THRESHOLD if threshold is None else threshold

    def match(self, descriptor: np.ndarray) -> MatchResult:
        return MatchResult(label=UNKNOWN_LABEL, distance=math.inf, threshold=self.threshold)
