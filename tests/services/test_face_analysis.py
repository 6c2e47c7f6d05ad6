"""Tests for combining the descriptor and age/gender passes."""
import pytest

from facecam.core.exceptions import TransientInferenceError
from facecam.domain.value_objects.recognition import DetectionOptions
from facecam.services.face_analysis import analyze_faces, merge_by_position
from factories import FakeFaceAnalyzer, make_descriptor, make_face

OPTIONS = DetectionOptions(input_size=224, score_threshold=0.5)


class TestMergeByPosition:

    def test_pairs_faces_in_order(self):
        described = [make_face(make_descriptor(0.1), left=0.1), make_face(make_descriptor(0.2), left=0.5)]
        attributed = [make_face(age=20, gender="female"), make_face(age=40, gender="male")]

        merged = merge_by_position(described, attributed)

        assert [face.descriptor[0] for face in merged] == pytest.approx([0.1, 0.2])
        assert [(face.age, face.gender) for face in merged] == [(20, "female"), (40, "male")]
        assert merged[1].bounding_box.left == 0.5

    def test_count_mismatch_is_rejected(self):
        with pytest.raises(TransientInferenceError) as exc_info:
            merge_by_position([make_face(make_descriptor(0.1))], [])
        assert exc_info.value.details == {"descriptor_faces": 1, "attribute_faces": 0}


class TestAnalyzeFaces:

    async def test_separate_passes_are_sequential_and_merged(self, frame):
        analyzer = FakeFaceAnalyzer([make_face(make_descriptor(0.1), age=31, gender="male")])

        faces = await analyze_faces(analyzer, frame, OPTIONS, with_descriptors=True, with_age_gender=True)

        assert len(analyzer.calls) == 2
        assert analyzer.calls[0]["with_descriptors"] and analyzer.calls[0]["with_landmarks"]
        assert not analyzer.calls[0]["with_age_gender"]
        assert analyzer.calls[1]["with_age_gender"] and not analyzer.calls[1]["with_descriptors"]
        assert faces[0].descriptor is not None
        assert faces[0].gender == "male"

    async def test_combined_analyzer_gets_one_call(self, frame):
        analyzer = FakeFaceAnalyzer([make_face(make_descriptor(0.1), age=31, gender="male")], combined=True)

        faces = await analyze_faces(analyzer, frame, OPTIONS, with_descriptors=True, with_age_gender=True)

        assert len(analyzer.calls) == 1
        assert faces[0].descriptor is not None and faces[0].age == 31

    async def test_no_faces_skips_attribute_pass(self, frame):
        analyzer = FakeFaceAnalyzer([])

        assert await analyze_faces(analyzer, frame, OPTIONS, with_descriptors=True, with_age_gender=True) == []
        assert len(analyzer.calls) == 1

    async def test_single_capability_is_one_call(self, frame):
        analyzer = FakeFaceAnalyzer([make_face(make_descriptor(0.1), age=31, gender="male")])

        faces = await analyze_faces(analyzer, frame, OPTIONS, with_age_gender=True)

        assert len(analyzer.calls) == 1
        assert faces[0].descriptor is None
        assert analyzer.calls[0]["options"] == OPTIONS

    async def test_passes_disagreeing_raise(self, frame):
        analyzer = FakeFaceAnalyzer([make_face(make_descriptor(0.1))])
        analyzer.attribute_faces = [make_face(age=30, gender="male"), make_face(age=50, gender="female")]

        with pytest.raises(TransientInferenceError):
            await analyze_faces(analyzer, frame, OPTIONS, with_descriptors=True, with_age_gender=True)
