"""Tests for the face session HTTP API."""
import pytest
from fastapi.testclient import TestClient

from facecam.core.config import settings
from facecam.core.session import FaceSession
from facecam.main import create_app
from facecam.services.recognition.loader import ModelLoader
from factories import make_descriptor, make_face, make_photo

API = settings.API_V1_STR


@pytest.fixture
def session(analyzer, video, store):
    return FaceSession(
        video=video,
        store=store,
        analyzer=analyzer,
        loader=ModelLoader(analyzer, max_polls=20, poll_interval=0.01),
    )


@pytest.fixture
def client(session):
    app = create_app(lambda: session)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def live_client(client):
    response = client.post(f"{API}/webcam/start")
    assert response.status_code == 200
    return client


def test_health_check(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_status_after_startup(client):
    response = client.get(f"{API}/status")

    assert response.status_code == 200
    body = response.json()
    assert body["ready"]
    assert body["level"] == "success"
    assert not body["webcam_running"]
    assert body["gallery_size"] == 0


def test_capture_requires_webcam(client):
    response = client.post(f"{API}/photos")

    assert response.status_code == 400
    assert response.json()["detail"] == "Please start webcam first."


def test_capture_and_train(live_client):
    response = live_client.post(f"{API}/photos")
    assert response.status_code == 201
    photo = response.json()
    assert photo["image_data"].startswith("data:image/jpeg;base64,")
    assert photo["faces"][0]["has_descriptor"]
    assert photo["faces"][0]["age"] == 31
    assert len(live_client.get(f"{API}/photos").json()) == 1

    response = live_client.post(f"{API}/identities", json={"name": "Alice"})
    assert response.status_code == 201
    identity = response.json()
    assert identity["name"] == "Alice"
    assert identity["descriptor_count"] == 1
    assert identity["gender"] == "male (97%)"

    assert [i["name"] for i in live_client.get(f"{API}/identities").json()] == ["Alice"]
    assert live_client.get(f"{API}/photos").json() == []


def test_train_with_empty_name(live_client):
    live_client.post(f"{API}/photos")

    response = live_client.post(f"{API}/identities", json={"name": "   "})

    assert response.status_code == 400
    assert response.json()["detail"] == "Please enter a name for the person."


def test_train_rejects_missing_name(live_client):
    assert live_client.post(f"{API}/identities", json={}).status_code == 422


def test_out_of_range_indexes(live_client):
    assert live_client.delete(f"{API}/photos/0").status_code == 404
    assert live_client.delete(f"{API}/identities/3").status_code == 404


def test_remove_identity_and_clear(client, session):
    session.gallery.enroll("Alice", [make_photo(make_face(make_descriptor(0.0)))])
    session.gallery.enroll("Bob", [make_photo(make_face(make_descriptor(1.0)))])

    response = client.delete(f"{API}/identities/0")
    assert response.status_code == 200
    assert response.json()["name"] == "Alice"

    response = client.delete(f"{API}/identities")
    assert response.status_code == 200
    assert response.json()["message"] == "All data cleared successfully."
    assert client.get(f"{API}/identities").json() == []


def test_recognition_requires_gallery(live_client):
    response = live_client.post(f"{API}/recognition/start")

    assert response.status_code == 400
    assert response.json()["detail"] == "No trained faces available. Please train some faces first."


def test_recognition_start_and_stop(live_client, session):
    session.gallery.enroll("Alice", [make_photo(make_face(make_descriptor(0.0)))])

    response = live_client.post(f"{API}/recognition/start")
    assert response.status_code == 200
    assert response.json()["running"]

    response = live_client.post(f"{API}/recognition/stop")
    assert response.status_code == 200
    assert not response.json()["running"]
    assert live_client.get(f"{API}/recognition").json()["results"] == []


def test_detection_toggle_and_visibility(live_client):
    response = live_client.post(f"{API}/detection/toggle")
    assert response.status_code == 200
    assert response.json()["running"]

    response = live_client.post(f"{API}/visibility", json={"hidden": True})
    assert response.status_code == 200
    body = response.json()
    assert body["hidden"]
    assert not body["detection_running"]
    assert not live_client.get(f"{API}/detection").json()["running"]


def test_webcam_failure(client, video):
    video.fail = True

    response = client.post(f"{API}/webcam/start")

    assert response.status_code == 409
    status = client.get(f"{API}/status").json()
    assert status["level"] == "error"
    assert status["message"].startswith("Error starting webcam: ")


def test_frame_is_jpeg(live_client):
    response = live_client.get(f"{API}/frame")

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/jpeg"
    assert response.content[:2] == b"\xff\xd8"


def test_frame_requires_webcam(client):
    assert client.get(f"{API}/frame").status_code == 400


def test_stop_webcam(live_client):
    response = live_client.post(f"{API}/webcam/stop")

    assert response.status_code == 200
    assert not response.json()["webcam_running"]


def test_startup_failure_is_reported(analyzer, session):
    analyzer.load_error = RuntimeError("missing weights")

    with TestClient(create_app(lambda: session)) as client:
        assert client.post(f"{API}/webcam/start").status_code == 503
        assert client.post(f"{API}/photos").status_code == 503

        response = client.get(f"{API}/status")
        assert response.status_code == 200
        body = response.json()
        assert not body["ready"]
        assert body["level"] == "error"
        assert "missing weights" in body["message"]
