"""FastAPI dependency providers."""
from fastapi import Depends, HTTPException, Request

from facecam.core.logging import get_logger
from facecam.core.session import FaceSession

logger = get_logger(__name__)


async def get_session(request: Request) -> FaceSession:
    """Dependency provider for the application's FaceSession."""
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Face session is not available")
    return session


async def get_ready_session(session: FaceSession = Depends(get_session)) -> FaceSession:
    """Provide the session once its face models are loaded.

    Raises:
        HTTPException: 503 if model loading failed or has not finished
    """
    if session.startup_error is not None:
        logger.warning("Rejecting request, face models failed to load", error=str(session.startup_error))
        raise HTTPException(status_code=503, detail=str(session.startup_error))
    if not session.is_ready:
        raise HTTPException(status_code=503, detail="Face recognition models are not loaded yet")
    return session
