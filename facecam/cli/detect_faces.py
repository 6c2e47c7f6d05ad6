"""CLI tool for face detection and recognition on an image file."""
import argparse
import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Optional

import cv2
import numpy as np

from facecam.core.config import settings
from facecam.core.exceptions import FaceRecognitionError
from facecam.core.logging import get_logger, setup_logging
from facecam.domain.entities.face import FaceDetection
from facecam.domain.value_objects.recognition import DetectionOptions, RecognitionResult
from facecam.infrastructure.storage.gallery_store import JsonFileGalleryStore
from facecam.services.face_analysis import analyze_faces
from facecam.services.gallery import FaceGallery
from facecam.services.overlay import OverlaySurface, detection_annotations, recognition_annotations
from facecam.services.recognition.loader import ModelLoader, build_analyzer

logger = get_logger(__name__)


def draw_faces(
    image: np.ndarray,
    faces: List[FaceDetection],
    results: Optional[Dict[int, RecognitionResult]] = None,
    output_path: Optional[Path] = None
) -> np.ndarray:
    """
    Draw face boxes with attribute or recognition labels on the image.

    Args:
        image: Original image as numpy array
        faces: Detected faces
        results: Recognition results keyed by face position, if recognizing
        output_path: Optional path to save the annotated image

    Returns:
        The annotated copy of the image
    """
    height, width = image.shape[:2]
    surface = OverlaySurface()
    surface.attach(width, height)
    if results is None:
        surface.draw(detection_annotations(faces, len(faces)))
    else:
        surface.draw(recognition_annotations(faces, results))
    img_draw = surface.compose(image)

    if output_path:
        cv2.imwrite(str(output_path), img_draw)
        logger.info("Saved annotated image", path=str(output_path))
    return img_draw


async def detect_faces(
    image_path: str,
    save_output: bool = True,
    recognize: bool = False,
    gallery_path: Optional[str] = None,
) -> None:
    """
    Detect faces in the given image, optionally matching them against the gallery.

    Args:
        image_path: Path to the image file
        save_output: Whether to save the annotated image
        recognize: Match faces against the stored gallery
        gallery_path: Gallery record to match against, defaults to settings.GALLERY_PATH
    """
    try:
        image_file = Path(image_path)
        if not image_file.exists():
            logger.error("Image file not found", path=image_path)
            sys.exit(1)

        img = cv2.imread(str(image_file))
        if img is None:
            logger.error("Failed to load image", path=image_path)
            sys.exit(1)

        analyzer = await ModelLoader(build_analyzer()).load()
        options = DetectionOptions(
            input_size=settings.CAPTURE_INPUT_SIZE,
            score_threshold=settings.CAPTURE_SCORE_THRESHOLD,
        )
        faces = await analyze_faces(
            analyzer, img, options, with_descriptors=recognize, with_age_gender=True
        )

        results = None
        if recognize:
            gallery = FaceGallery(JsonFileGalleryStore(gallery_path), descriptor_size=analyzer.descriptor_size)
            gallery.load()
            results = {
                index: RecognitionResult.from_match(gallery.matcher.match(face.descriptor), face)
                for index, face in enumerate(faces)
                if face.descriptor is not None
            }

        logger.info(
            "Face detection completed",
            num_faces=len(faces),
            image_path=image_path
        )

        for i, face in enumerate(faces, 1):
            details = {
                "position": {
                    "top": f"{face.bounding_box.top:.3f}",
                    "left": f"{face.bounding_box.left:.3f}",
                    "width": f"{face.bounding_box.width:.3f}",
                    "height": f"{face.bounding_box.height:.3f}"
                },
                "age": face.age,
                "gender": face.gender,
            }
            if results is not None and (i - 1) in results:
                result = results[i - 1]
                details.update(label=result.label, distance=f"{result.distance:.3f}")
            logger.info(f"Face {i} details", **details)

        output_path = None
        if save_output:
            output_path = image_file.parent / f"{image_file.stem}_detected{image_file.suffix}"
        draw_faces(img, faces, results, output_path)

    except FaceRecognitionError as e:
        logger.error("Face detection failed", error=str(e), **e.details)
        sys.exit(1)
    except Exception as e:
        logger.error("Face detection failed", error=str(e), exc_info=True)
        sys.exit(1)


def main() -> None:
    """CLI entry point."""
    setup_logging()
    parser = argparse.ArgumentParser(description="Detect, describe and recognize faces in an image")
    parser.add_argument("image_path", help="Path to the image file")
    parser.add_argument(
        "--no-save",
        action="store_true",
        help="Don't save the annotated image"
    )
    parser.add_argument(
        "--recognize",
        action="store_true",
        help="Match detected faces against the stored gallery"
    )
    parser.add_argument(
        "--gallery",
        default=None,
        help=f"Gallery record to match against (default: {settings.GALLERY_PATH})"
    )
    args = parser.parse_args()

    asyncio.run(detect_faces(args.image_path, not args.no_save, args.recognize, args.gallery))


if __name__ == "__main__":
    main()
