"""Webcam face session API endpoints."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from facecam.api.models.face import (
    CapturedPhotoResponse,
    DetectionResponse,
    IdentityResponse,
    RecognitionResponse,
    StatusResponse,
    TrainRequest,
    VisibilityRequest,
)
from facecam.core.exceptions import (
    FaceRecognitionError,
    IndexOutOfRangeError,
    InvalidImageError,
    InvalidNameError,
    MediaAccessError,
    NoFaceDescriptorError,
    NoFaceDetectedError,
    NoGalleryError,
    StartupError,
    WebcamNotStartedError,
)
from facecam.core.logging import get_logger
from facecam.core.session import FaceSession
from facecam.infrastructure.dependencies import get_ready_session, get_session

logger = get_logger(__name__)
router = APIRouter(
    tags=["face-session"],
    responses={
        400: {"description": "Invalid request"},
        503: {"description": "Face models not loaded"},
        500: {"description": "Internal server error"}
    }
)

BAD_REQUEST_ERRORS = (
    InvalidNameError,
    InvalidImageError,
    NoFaceDetectedError,
    NoFaceDescriptorError,
    NoGalleryError,
    WebcamNotStartedError,
)


def _to_http_error(e: Exception, action: str) -> HTTPException:
    """Map a session error to the HTTP status the client should see."""
    if isinstance(e, BAD_REQUEST_ERRORS):
        status_code = 400
    elif isinstance(e, IndexOutOfRangeError):
        status_code = 404
    elif isinstance(e, MediaAccessError):
        status_code = 409
    elif isinstance(e, StartupError):
        status_code = 503
    else:
        logger.error(f"Unexpected error during {action}", error=str(e), exc_info=True)
        detail = str(e) if isinstance(e, FaceRecognitionError) else "An unexpected error occurred."
        return HTTPException(status_code=500, detail=detail)

    logger.warning(f"{action.capitalize()} rejected", error=str(e), status_code=status_code)
    return HTTPException(status_code=status_code, detail=str(e))


@router.get("/status", response_model=StatusResponse, summary="Session status")
async def get_status(session: FaceSession = Depends(get_session)) -> StatusResponse:
    """Current status line and session state. Available even when startup failed."""
    return StatusResponse.from_session(session)


@router.post("/webcam/start", response_model=StatusResponse, summary="Start the webcam")
async def start_webcam(session: FaceSession = Depends(get_ready_session)) -> StatusResponse:
    try:
        await session.start_webcam()
    except Exception as e:
        raise _to_http_error(e, "webcam start")
    return StatusResponse.from_session(session)


@router.post("/webcam/stop", response_model=StatusResponse, summary="Stop the webcam")
async def stop_webcam(session: FaceSession = Depends(get_session)) -> StatusResponse:
    """Stop both live loops and release the camera."""
    try:
        await session.stop_webcam()
    except Exception as e:
        raise _to_http_error(e, "webcam stop")
    return StatusResponse.from_session(session)


@router.post("/detection/toggle", response_model=DetectionResponse, summary="Toggle live detection")
async def toggle_detection(session: FaceSession = Depends(get_ready_session)) -> DetectionResponse:
    """Start live detection, or stop it when already running.

    Starting detection stops recognition.
    """
    try:
        running = await session.toggle_detection()
    except Exception as e:
        raise _to_http_error(e, "detection toggle")
    return DetectionResponse.from_snapshot(running, session.detection.snapshot)


@router.get("/detection", response_model=DetectionResponse, summary="Latest detection results")
async def get_detection(session: FaceSession = Depends(get_ready_session)) -> DetectionResponse:
    return DetectionResponse.from_snapshot(session.detection.is_running, session.detection.snapshot)


@router.post(
    "/photos",
    response_model=CapturedPhotoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Capture a photo for training",
    responses={
        400: {
            "description": "No face in the frame or webcam not started",
            "content": {
                "application/json": {
                    "example": {"detail": "No faces detected in the photo. Please try again."}
                }
            },
        },
    },
)
async def capture_photo(session: FaceSession = Depends(get_ready_session)) -> CapturedPhotoResponse:
    """Grab the current frame, detect faces with descriptors and age/gender, and buffer it.

    Raises:
        HTTPException: 400 when the webcam is off or the frame has no face
    """
    try:
        photo = await session.capture_photo()
    except Exception as e:
        raise _to_http_error(e, "photo capture")
    return CapturedPhotoResponse.from_photo(photo)


@router.get("/photos", response_model=List[CapturedPhotoResponse], summary="Buffered photos")
async def list_photos(session: FaceSession = Depends(get_ready_session)) -> List[CapturedPhotoResponse]:
    return [CapturedPhotoResponse.from_photo(photo) for photo in session.enrollment.photos]


@router.delete("/photos/{index}", response_model=CapturedPhotoResponse, summary="Remove a buffered photo")
async def remove_photo(index: int, session: FaceSession = Depends(get_ready_session)) -> CapturedPhotoResponse:
    try:
        photo = session.remove_captured_photo(index)
    except Exception as e:
        raise _to_http_error(e, "photo removal")
    return CapturedPhotoResponse.from_photo(photo)


@router.post(
    "/identities",
    response_model=IdentityResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Train an identity from the buffered photos",
    responses={
        400: {
            "description": "Missing name or no usable face descriptor",
            "content": {
                "application/json": {
                    "example": {"detail": "Please enter a name for the person."}
                }
            },
        },
    },
)
async def train_identity(
    request: TrainRequest,
    session: FaceSession = Depends(get_ready_session)
) -> IdentityResponse:
    """Enroll every buffered photo under one name and clear the buffer.

    Args:
        request: Name of the person in the photos
        session: Face session provided by dependency injection

    Returns:
        IdentityResponse for the new gallery entry

    Raises:
        HTTPException: 400 for an empty name or when no descriptor was captured
    """
    try:
        identity = session.train(request.name)
    except Exception as e:
        raise _to_http_error(e, "training")
    return IdentityResponse.from_identity(identity)


@router.get("/identities", response_model=List[IdentityResponse], summary="Enrolled identities")
async def list_identities(session: FaceSession = Depends(get_session)) -> List[IdentityResponse]:
    """Identities in enrollment order."""
    return [IdentityResponse.from_identity(identity) for identity in session.gallery.identities]


@router.delete("/identities/{index}", response_model=IdentityResponse, summary="Remove an identity")
async def remove_identity(index: int, session: FaceSession = Depends(get_session)) -> IdentityResponse:
    try:
        identity = session.remove_identity(index)
    except Exception as e:
        raise _to_http_error(e, "identity removal")
    return IdentityResponse.from_identity(identity)


@router.delete("/identities", response_model=StatusResponse, summary="Clear the gallery")
async def clear_identities(session: FaceSession = Depends(get_session)) -> StatusResponse:
    try:
        session.clear_gallery()
    except Exception as e:
        raise _to_http_error(e, "gallery clear")
    return StatusResponse.from_session(session)


@router.post("/recognition/start", response_model=RecognitionResponse, summary="Start live recognition")
async def start_recognition(session: FaceSession = Depends(get_ready_session)) -> RecognitionResponse:
    """Start labelling live faces with enrolled names. Stops detection.

    Raises:
        HTTPException: 400 when nobody is enrolled or the webcam is off
    """
    try:
        await session.start_recognition()
    except Exception as e:
        raise _to_http_error(e, "recognition start")
    return RecognitionResponse.from_snapshot(session.recognition.is_running, session.recognition.snapshot)


@router.post("/recognition/stop", response_model=RecognitionResponse, summary="Stop live recognition")
async def stop_recognition(session: FaceSession = Depends(get_ready_session)) -> RecognitionResponse:
    try:
        await session.stop_recognition()
    except Exception as e:
        raise _to_http_error(e, "recognition stop")
    return RecognitionResponse.from_snapshot(session.recognition.is_running, session.recognition.snapshot)


@router.get("/recognition", response_model=RecognitionResponse, summary="Latest recognition results")
async def get_recognition(session: FaceSession = Depends(get_ready_session)) -> RecognitionResponse:
    return RecognitionResponse.from_snapshot(session.recognition.is_running, session.recognition.snapshot)


@router.post("/visibility", response_model=StatusResponse, summary="Report page visibility")
async def set_visibility(
    request: VisibilityRequest,
    session: FaceSession = Depends(get_session)
) -> StatusResponse:
    """Hiding the page stops both live loops; they are not restarted on return."""
    try:
        await session.set_hidden(request.hidden)
    except Exception as e:
        raise _to_http_error(e, "visibility update")
    return StatusResponse.from_session(session)


@router.get(
    "/frame",
    response_class=Response,
    summary="Current frame with overlay",
    responses={200: {"content": {"image/jpeg": {}}}},
)
async def get_frame(session: FaceSession = Depends(get_ready_session)) -> Response:
    """JPEG of the current webcam frame with the live loop annotations drawn on it."""
    try:
        content = await session.render_frame()
    except Exception as e:
        raise _to_http_error(e, "frame render")
    return Response(content=content, media_type="image/jpeg")
