"""Tests for the overlay render surface."""
import numpy as np

from facecam.domain.value_objects.recognition import MatchResult, RecognitionResult
from facecam.services.overlay import (
    OverlaySurface,
    detection_annotations,
    recognition_annotations,
)
from factories import make_descriptor, make_face


def recognition(face, label, distance):
    return RecognitionResult.from_match(MatchResult(label=label, distance=distance, threshold=0.6), face)


class TestAnnotations:

    def test_detection_labels_are_capped(self):
        faces = [make_face(age=30, gender="male", gender_confidence=0.9, left=i * 0.2) for i in range(3)]

        annotations = detection_annotations(faces, max_labels=2)

        assert len(annotations) == 3
        assert [a.labels[0].text for a in annotations[:2]] == ["male (90%) - Age: 30"] * 2
        assert annotations[2].labels == []

    def test_detection_without_attributes_has_no_label(self):
        assert detection_annotations([make_face()], max_labels=2)[0].labels == []

    def test_recognition_label_styles(self):
        known = make_face(make_descriptor(0.1), age=31, gender="male")
        stranger = make_face(make_descriptor(0.9), left=0.5)
        unmatched = make_face(left=0.7)

        annotations = recognition_annotations(
            [known, stranger, unmatched],
            {0: recognition(known, "Alice", 0.25), 1: recognition(stranger, "unknown", 0.8)},
        )

        first, second, third = annotations
        assert first.labels[0].text == "Alice (75.0%)"
        assert first.labels[0].style == "recognized"
        assert first.labels[1].text == "male - Age: 31"
        assert first.labels[1].position == "below"
        assert second.labels[0].text == "Unknown (20.0%)"
        assert second.labels[0].style == "unknown"
        assert len(second.labels) == 1
        assert third.labels == []


class TestOverlaySurface:

    def test_draw_on_detached_surface_is_ignored(self):
        surface = OverlaySurface()

        assert not surface.draw(detection_annotations([make_face()], 2))
        assert surface.annotations == ()

    def test_draw_and_clear(self):
        surface = OverlaySurface()
        surface.attach(480, 360)

        assert surface.draw(detection_annotations([make_face(), make_face(left=0.5)], 2))
        assert len(surface.annotations) == 2
        surface.clear()
        assert surface.annotations == ()
        assert surface.is_attached

    def test_detach_drops_annotations(self):
        surface = OverlaySurface()
        surface.attach(480, 360)
        surface.draw(detection_annotations([make_face()], 2))

        surface.detach()

        assert not surface.is_attached
        assert surface.size is None
        assert surface.annotations == ()

    def test_compose_draws_on_a_copy(self, frame):
        surface = OverlaySurface()
        surface.attach(480, 360)
        surface.draw(detection_annotations([make_face(age=30, gender="female")], 2))

        composed = surface.compose(frame)

        assert composed.shape == frame.shape
        assert composed.any()
        assert not frame.any()

    def test_compose_without_annotations_is_unchanged(self, frame):
        surface = OverlaySurface()
        surface.attach(480, 360)

        assert np.array_equal(surface.compose(frame), frame)
