"""Tests for the enrollment pipeline."""
import pytest

from facecam.core.exceptions import (
    IndexOutOfRangeError,
    InvalidNameError,
    NoFaceDetectedError,
    TransientInferenceError,
)
from facecam.domain.value_objects.recognition import DetectionOptions
from facecam.services.enrollment import EnrollmentService
from factories import FakeFaceAnalyzer, make_descriptor, make_face


@pytest.fixture
def enrollment(analyzer, gallery):
    return EnrollmentService(analyzer, gallery)


class TestCapture:
    """Test suite for capturing photos into the buffer."""

    async def test_capture_buffers_photo_with_faces(self, enrollment, analyzer, frame):
        photo = await enrollment.capture(frame)

        assert enrollment.photos == (photo,)
        assert photo.image_data.startswith("data:image/jpeg;base64,")
        assert photo.assigned_name == ""
        face = photo.detections[0]
        assert face.descriptor is not None
        assert face.gender == "male"
        assert round(face.age) == 31

    async def test_capture_uses_still_frame_options(self, enrollment, analyzer, frame):
        await enrollment.capture(frame)

        assert analyzer.calls[0]["options"] == DetectionOptions(input_size=416, score_threshold=0.5)

    async def test_capture_without_face_leaves_buffer_unchanged(self, gallery, frame):
        enrollment = EnrollmentService(FakeFaceAnalyzer([]), gallery)

        with pytest.raises(NoFaceDetectedError):
            await enrollment.capture(frame)

        assert enrollment.photos == ()

    async def test_capture_with_misaligned_passes(self, gallery, frame):
        analyzer = FakeFaceAnalyzer([make_face(make_descriptor(0.1))])
        analyzer.attribute_faces = []
        enrollment = EnrollmentService(analyzer, gallery)

        with pytest.raises(TransientInferenceError):
            await enrollment.capture(frame)
        assert enrollment.photos == ()

    async def test_photo_ids_are_unique(self, enrollment, frame):
        first = await enrollment.capture(frame)
        second = await enrollment.capture(frame)

        assert first.id != second.id
        assert len(enrollment.photos) == 2


class TestBuffer:
    """Test suite for editing and committing the buffer."""

    async def test_remove_photo(self, enrollment, frame):
        first = await enrollment.capture(frame)
        second = await enrollment.capture(frame)

        assert enrollment.remove_photo(0) is first
        assert enrollment.photos == (second,)

    def test_remove_photo_out_of_range(self, enrollment):
        with pytest.raises(IndexOutOfRangeError):
            enrollment.remove_photo(0)

    async def test_commit_enrolls_and_clears_buffer(self, enrollment, gallery, frame):
        first = await enrollment.capture(frame)
        second = await enrollment.capture(frame)

        identity = enrollment.commit(" Alice ")

        assert identity.name == "Alice"
        assert len(identity.descriptors) == 2
        assert identity.image_src == first.image_data
        assert identity.age_label == "Age: 31"
        assert identity.gender_label == "male (97%)"
        assert gallery.identities == (identity,)
        assert enrollment.photos == ()
        assert first.assigned_name == second.assigned_name == "Alice"

    async def test_failed_commit_keeps_buffer(self, enrollment, gallery, frame):
        photo = await enrollment.capture(frame)

        with pytest.raises(InvalidNameError):
            enrollment.commit("   ")

        assert enrollment.photos == (photo,)
        assert photo.assigned_name == ""
        assert gallery.is_empty
