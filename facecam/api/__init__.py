"""API v1 router initialization."""
from fastapi import APIRouter

from .face_recognition import router as face_session_router

# Create v1 router
router = APIRouter()

# Session actions live directly under the version prefix
router.include_router(face_session_router)
