"""Descriptor gallery: named identities, their persistence and the derived matcher."""
import json
from typing import List, Optional, Sequence, Tuple

from pydantic import TypeAdapter, ValidationError

from facecam.core.config import settings
from facecam.core.exceptions import (
    GalleryStorageError,
    IndexOutOfRangeError,
    InvalidNameError,
    NoFaceDescriptorError,
    NoPhotosCapturedError,
    PersistenceCorruptionError,
)
from facecam.core.logging import get_logger
from facecam.domain.entities.face import CapturedPhoto, FaceDetection, Identity
from facecam.domain.interfaces.storage.gallery_store import GalleryStore
from facecam.domain.models.storage.identity import StoredIdentityRecord
from facecam.domain.value_objects.recognition import FaceAttributes
from facecam.services.matcher import FaceMatcher, NullFaceMatcher

logger = get_logger(__name__)

_records_adapter = TypeAdapter(List[StoredIdentityRecord])


class FaceGallery:
    """Ordered collection of enrolled identities.

    Every mutation writes the full gallery to the store before it is applied in
    memory, then replaces the matcher with one rebuilt from the new snapshot.
    A failed write therefore leaves both the gallery and the matcher untouched.

    Example:
        ```python
        gallery = FaceGallery(JsonFileGalleryStore("data/stored_faces.json"))
        gallery.load()
        identity = gallery.enroll("Alice", captured_photos)
        result = gallery.matcher.match(descriptor)
        ```
    """

    def __init__(
        self,
        store: GalleryStore,
        descriptor_size: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> None:
        """Initialize an empty gallery.

        Args:
            store: Backend holding the serialized gallery record
            descriptor_size: Required descriptor length, defaults to settings.DESCRIPTOR_SIZE
            threshold: Matcher threshold, defaults to settings.MATCH_THRESHOLD
        """
        self._store = store
        self.descriptor_size = descriptor_size or settings.DESCRIPTOR_SIZE
        self.threshold = settings.MATCH_THRESHOLD if threshold is None else threshold
        self._identities: Tuple[Identity, ...] = ()
        self._matcher: FaceMatcher = NullFaceMatcher(self.threshold)

    @property
    def identities(self) -> Tuple[Identity, ...]:
        return self._identities

    @property
    def matcher(self) -> FaceMatcher:
        """Matcher consistent with the gallery as of the last successful mutation."""
        return self._matcher

    @property
    def is_empty(self) -> bool:
        return not self._identities

    def __len__(self) -> int:
        return len(self._identities)

    def load(self) -> Tuple[Identity, ...]:
        """Replace the in-memory gallery with the stored one.

        A corrupt record is logged, removed from the store and replaced by an
        empty gallery. This method never raises.
        """
        identities: Tuple[Identity, ...] = ()
        try:
            payload = self._store.read()
            if payload is not None:
                identities = self.deserialize(payload)
        except GalleryStorageError as e:
            logger.warning("Gallery record unreadable, starting empty", error=str(e))
        except PersistenceCorruptionError as e:
            logger.warning("Discarding corrupt gallery record", error=str(e), **e.details)
            try:
                self._store.clear()
            except GalleryStorageError as clear_error:
                logger.error("Failed to remove corrupt gallery record", error=str(clear_error))

        self._commit(identities)
        logger.info(
            "Loaded face gallery",
            identities=len(identities),
            descriptors=sum(len(i.descriptors) for i in identities)
        )
        return self._identities

    def save(self) -> None:
        """Write the full gallery to the store."""
        self._store.write(self.serialize(self._identities))

    def enroll(self, name: str, photos: Sequence[CapturedPhoto]) -> Identity:
        """Create an identity from every face descriptor in the photos and append it.

        Args:
            name: Display name; surrounding whitespace is trimmed
            photos: Captured photos, each with one or more detections

        Returns:
            The new Identity

        Raises:
            InvalidNameError: If the name is empty after trimming
            NoPhotosCapturedError: If no photos were given
            NoFaceDescriptorError: If the photos hold no usable descriptor
            GalleryStorageError: If the gallery cannot be persisted
        """
        identity = self.create_identity(name, photos)
        self._persist_and_commit(self._identities + (identity,))

        logger.info(
            "Identity enrolled",
            name=identity.name,
            descriptors=len(identity.descriptors),
            photos=len(photos),
            gallery_size=len(self._identities)
        )
        return identity

    def remove(self, index: int) -> Identity:
        """Delete the identity at `index`.

        Raises:
            IndexOutOfRangeError: If the index is not a valid position
            GalleryStorageError: If the gallery cannot be persisted
        """
        if not 0 <= index < len(self._identities):
            raise IndexOutOfRangeError(
                f"No identity at index {index}",
                details={"index": index, "size": len(self._identities)}
            )
        removed = self._identities[index]
        self._persist_and_commit(self._identities[:index] + self._identities[index + 1:])

        logger.info("Identity removed", name=removed.name, gallery_size=len(self._identities))
        return removed

    def clear(self) -> None:
        """Empty the gallery and remove the stored record."""
        self._store.clear()
        self._commit(())
        logger.info("Face gallery cleared")

    def create_identity(self, name: str, photos: Sequence[CapturedPhoto]) -> Identity:
        """Build an identity from the photos without touching the gallery."""
        name = (name or "").strip()
        if not name:
            raise InvalidNameError("Please enter a name for the person.")
        if not photos:
            raise NoPhotosCapturedError("No photos captured. Please capture some photos first.")

        descriptors = []
        labelled: Optional[FaceDetection] = None
        for photo in photos:
            for detection in photo.detections:
                if not self._is_usable(detection):
                    continue
                descriptors.append(detection.descriptor)
                if detection.has_attributes:
                    labelled = detection

        if not descriptors:
            raise NoFaceDescriptorError(
                "No valid face descriptors found. Please try capturing photos again.",
                details={"photos": len(photos)}
            )

        age_label, gender_label = self._attribute_labels(labelled)
        return Identity(
            name=name,
            descriptors=descriptors,
            image_src=photos[0].image_data,
            age_label=age_label,
            gender_label=gender_label,
        )

    def serialize(self, identities: Sequence[Identity]) -> str:
        """Serialize identities to the stored JSON layout."""
        records = [StoredIdentityRecord.from_identity(i).model_dump(by_alias=True) for i in identities]
        return json.dumps(records)

    def deserialize(self, payload: str) -> Tuple[Identity, ...]:
        """Parse a stored JSON record.

        Raises:
            PersistenceCorruptionError: On malformed JSON, missing fields,
                descriptors of the wrong length or an unrepresentable timestamp
        """
        try:
            records = _records_adapter.validate_python(json.loads(payload))
        except ValueError as e:
            # ValidationError is a ValueError subclass, as is JSONDecodeError
            raise PersistenceCorruptionError(f"Malformed gallery record: {str(e)}")

        for position, record in enumerate(records):
            for descriptor in record.descriptors:
                if len(descriptor) != self.descriptor_size:
                    raise PersistenceCorruptionError(
                        "Stored descriptor has the wrong length",
                        details={
                            "position": position,
                            "expected": self.descriptor_size,
                            "actual": len(descriptor),
                        }
                    )
        try:
            return tuple(record.to_identity() for record in records)
        except (ValueError, OverflowError, OSError) as e:
            raise PersistenceCorruptionError(f"Malformed gallery record: {str(e)}")

    def _is_usable(self, detection: FaceDetection) -> bool:
        return detection.descriptor is not None and detection.descriptor.shape[0] == self.descriptor_size

    @staticmethod
    def _attribute_labels(detection: Optional[FaceDetection]) -> Tuple[Optional[str], Optional[str]]:
        if detection is None:
            return None, None
        attributes = FaceAttributes.from_face(detection)
        gender = attributes.gender
        if attributes.gender_confidence is not None:
            gender = f"{gender} ({attributes.gender_confidence}%)"
        return f"Age: {attributes.age}", gender

    def _persist_and_commit(self, identities: Tuple[Identity, ...]) -> None:
        self._store.write(self.serialize(identities))
        self._commit(identities)

    def _commit(self, identities: Tuple[Identity, ...]) -> None:
        matcher = FaceMatcher.build(identities, self.threshold)
        self._identities = identities
        self._matcher = matcher
