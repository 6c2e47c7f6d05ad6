"""
Image processing utility functions.
"""
import base64

import cv2
import numpy as np

from facecam.core.exceptions import InvalidImageError


def encode_jpeg(image: np.ndarray, quality: int = 80) -> bytes:
    """Encode a BGR image as JPEG bytes.

    Args:
        image: Image as a numpy array (BGR)
        quality: JPEG quality (0-100)

    Returns:
        bytes: Encoded JPEG image

    Raises:
        InvalidImageError: If the image cannot be encoded
    """
    ok, buffer = cv2.imencode(".jpg", image, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    if not ok:
        raise InvalidImageError("Failed to encode image as JPEG")
    return buffer.tobytes()


def to_data_url(image: np.ndarray, quality: int = 80) -> str:
    """Encode a BGR image as a JPEG data URL, e.g. for gallery thumbnails."""
    encoded = base64.b64encode(encode_jpeg(image, quality)).decode("ascii")
    return f"data:image/jpeg;base64,{encoded}"
