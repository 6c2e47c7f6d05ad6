"""Configuration settings for the webcam face service."""
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    These settings are loaded from environment variables with the following precedence:
    1. Environment variables
    2. .env file
    3. Default values

    Attributes:
        ANALYZER_BACKEND: Inference backend, "composite" (dlib descriptors plus
            InsightFace age/gender) or "insightface" (single combined call)
        DESCRIPTOR_SIZE: Descriptor length for galleries built without an analyzer;
            the session uses the length its analyzer produces
        MATCH_THRESHOLD: Euclidean distance below which a face is recognized
        GALLERY_PATH: File holding the serialized gallery record
    """
    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_prefix="",
        env_nested_delimiter="__"
    )

    # Core Settings
    PROJECT_NAME: str = "Webcam Face Service"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"

    # CORS Settings
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    @property
    def cors_origins(self) -> List[str]:
        """Get list of allowed origins."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    # Inference Settings
    ANALYZER_BACKEND: str = "composite"
    MODEL_CACHE_DIR: str = ".model_cache"
    MODEL_PATH: str = "buffalo_l"
    DLIB_LANDMARK_MODEL: str = "large"  # 68-point landmarks
    MODEL_LOAD_MAX_POLLS: int = 50
    MODEL_LOAD_POLL_INTERVAL: float = 0.1  # 50 polls x 100ms = 5s

    # Detector options
    LIVE_INPUT_SIZE: int = 224
    LIVE_SCORE_THRESHOLD: float = 0.5
    CAPTURE_INPUT_SIZE: int = 416
    CAPTURE_SCORE_THRESHOLD: float = 0.5
    CAPTURE_JPEG_QUALITY: int = 80

    # Recognition Settings
    DESCRIPTOR_SIZE: int = 128
    MATCH_THRESHOLD: float = 0.6
    MAX_LIVE_FACES: int = 2
    LIVE_INTERVAL_SECONDS: float = 0.2  # 5 samples per second

    # Camera Settings
    CAMERA_INDEX: int = 0
    CAMERA_WIDTH: int = 480
    CAMERA_HEIGHT: int = 360
    CAMERA_READY_TIMEOUT: float = 5.0

    # Storage Settings
    GALLERY_PATH: str = "data/stored_faces.json"

    # Optional settings with defaults
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000

settings = Settings()
