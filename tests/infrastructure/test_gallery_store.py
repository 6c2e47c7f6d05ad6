"""Tests for the gallery record storage backends."""
import json

import pytest

from facecam.core.exceptions import GalleryStorageError, PersistenceCorruptionError
from facecam.infrastructure.storage.gallery_store import JsonFileGalleryStore, MemoryGalleryStore
from facecam.services.gallery import FaceGallery
from factories import make_descriptor, make_face, make_photo


class TestJsonFileGalleryStore:
    """Test suite for the on-disk JSON record."""

    def test_missing_file_reads_none(self, tmp_path):
        assert JsonFileGalleryStore(str(tmp_path / "stored_faces.json")).read() is None

    def test_write_creates_directories(self, tmp_path):
        path = tmp_path / "data" / "stored_faces.json"
        store = JsonFileGalleryStore(str(path))

        store.write('[{"name": "Alice"}]')

        assert path.exists()
        assert store.read() == '[{"name": "Alice"}]'

    def test_write_replaces_without_leftovers(self, tmp_path):
        store = JsonFileGalleryStore(str(tmp_path / "stored_faces.json"))

        store.write("[]")
        store.write('["second"]')

        assert store.read() == '["second"]'
        assert [p.name for p in tmp_path.iterdir()] == ["stored_faces.json"]

    def test_clear_removes_record(self, tmp_path):
        store = JsonFileGalleryStore(str(tmp_path / "stored_faces.json"))
        store.write("[]")

        store.clear()
        store.clear()

        assert store.read() is None

    def test_unwritable_location_raises(self, tmp_path):
        blocker = tmp_path / "not_a_directory"
        blocker.write_text("x")
        store = JsonFileGalleryStore(str(blocker / "stored_faces.json"))

        with pytest.raises(GalleryStorageError):
            store.write("[]")

    def test_gallery_survives_restart(self, tmp_path):
        path = str(tmp_path / "stored_faces.json")
        gallery = FaceGallery(JsonFileGalleryStore(path))
        gallery.enroll("Alice", [make_photo(make_face(make_descriptor(0.25)))])

        restarted = FaceGallery(JsonFileGalleryStore(path))
        restarted.load()

        assert [i.name for i in restarted.identities] == ["Alice"]
        assert restarted.matcher.match(make_descriptor(0.25)).label == "Alice"

    def test_corrupt_file_is_removed_on_load(self, tmp_path):
        path = tmp_path / "stored_faces.json"
        path.write_text("{broken")

        gallery = FaceGallery(JsonFileGalleryStore(str(path)))
        gallery.load()

        assert gallery.is_empty
        assert not path.exists()

    def test_undecodable_file_reads_as_corrupt(self, tmp_path):
        path = tmp_path / "stored_faces.json"
        path.write_bytes(b"\xff\xfe\x00garbage")

        with pytest.raises(PersistenceCorruptionError):
            JsonFileGalleryStore(str(path)).read()

    def test_undecodable_file_is_removed_on_load(self, tmp_path):
        path = tmp_path / "stored_faces.json"
        path.write_bytes(b"\xff\xfe\x00garbage")

        gallery = FaceGallery(JsonFileGalleryStore(str(path)))
        assert gallery.load() == ()

        assert gallery.is_empty
        assert not path.exists()


class TestMemoryGalleryStore:

    def test_round_trip(self):
        store = MemoryGalleryStore()
        assert store.read() is None

        store.write(json.dumps([]))
        assert store.read() == "[]"

        store.clear()
        assert store.read() is None
