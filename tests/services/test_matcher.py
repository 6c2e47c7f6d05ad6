"""Tests for the nearest-neighbour face matcher."""
import math

import numpy as np
import pytest

from facecam.domain.entities.face import Identity
from facecam.services.matcher import FaceMatcher, NullFaceMatcher
from factories import PHOTO_DATA, make_descriptor


def identity(name, *descriptors):
    return Identity(name=name, descriptors=list(descriptors), image_src=PHOTO_DATA)


class TestFaceMatcher:
    """Test suite for FaceMatcher."""

    def test_empty_gallery_builds_null_matcher(self):
        """Should label everything unknown with infinite distance."""
        matcher = FaceMatcher.build([], threshold=0.6)

        assert isinstance(matcher, NullFaceMatcher)
        assert matcher.is_empty
        result = matcher.match(make_descriptor(0.0))
        assert result.label == "unknown"
        assert math.isinf(result.distance)
        assert not result.recognized

    def test_distance_just_below_threshold_is_recognized(self):
        matcher = FaceMatcher.build([identity("Alice", make_descriptor(0.0))], threshold=0.6)

        result = matcher.match(make_descriptor(0.59))

        assert result.label == "Alice"
        assert result.recognized
        assert result.distance == pytest.approx(0.59, abs=1e-6)

    def test_distance_above_threshold_is_unknown(self):
        matcher = FaceMatcher.build([identity("Alice", make_descriptor(0.0))], threshold=0.6)

        result = matcher.match(make_descriptor(0.61))

        assert result.label == "unknown"
        assert result.distance == pytest.approx(0.61, abs=1e-6)

    def test_distance_equal_to_threshold_is_unknown(self):
        """The threshold comparison is strict."""
        matcher = FaceMatcher.build([identity("Alice", make_descriptor(0.0))], threshold=0.5)

        result = matcher.match(make_descriptor(0.5))

        assert result.distance == 0.5
        assert result.label == "unknown"

    def test_every_descriptor_is_a_comparison_point(self):
        """The closest single descriptor wins, not the identity average."""
        alice = identity("Alice", make_descriptor(0.0), make_descriptor(1.0))
        bob = identity("Bob", make_descriptor(0.55))
        matcher = FaceMatcher.build([alice, bob], threshold=0.6)

        assert len(matcher) == 3
        # Against Alice's mean (0.5) Bob would be closer
        result = matcher.match(make_descriptor(0.95))
        assert result.label == "Alice"
        assert result.distance == pytest.approx(0.05, abs=1e-6)

    def test_ties_resolve_to_first_enrolled(self):
        shared = make_descriptor(0.2)
        matcher = FaceMatcher.build([identity("First", shared), identity("Second", shared)], threshold=0.6)

        assert matcher.match(make_descriptor(0.3)).label == "First"

    def test_duplicate_names_stay_separate_points(self):
        matcher = FaceMatcher.build(
            [identity("Alice", make_descriptor(0.0)), identity("Alice", make_descriptor(2.0))],
            threshold=0.6
        )

        assert len(matcher) == 2
        assert matcher.match(make_descriptor(2.1)).label == "Alice"

    def test_descriptor_length_mismatch_raises(self):
        matcher = FaceMatcher.build([identity("Alice", make_descriptor(0.0))], threshold=0.6)

        with pytest.raises(ValueError):
            matcher.match(np.zeros(64, dtype=np.float32))

    def test_labels_must_align_with_points(self):
        with pytest.raises(ValueError):
            FaceMatcher(["Alice"], np.zeros((2, 128)), threshold=0.6)
