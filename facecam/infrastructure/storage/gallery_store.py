"""Gallery record storage backends."""
import os
import tempfile
from typing import Optional

from facecam.core.config import settings
from facecam.core.exceptions import GalleryStorageError, PersistenceCorruptionError
from facecam.core.logging import get_logger
from facecam.domain.interfaces.storage.gallery_store import GalleryStore

logger = get_logger(__name__)


class JsonFileGalleryStore(GalleryStore):
    """Stores the gallery record as a JSON file on local disk.

    Writes go to a temporary file in the same directory that is then renamed
    over the record, so a crash mid-write never leaves a truncated gallery.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or settings.GALLERY_PATH

    def read(self) -> Optional[str]:
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return f.read()
        except UnicodeDecodeError as e:
            raise PersistenceCorruptionError(f"Gallery record is not valid UTF-8: {str(e)}")
        except OSError as e:
            logger.error("Failed to read gallery record", path=self.path, error=str(e))
            raise GalleryStorageError(f"Failed to read gallery record: {str(e)}")

    def write(self, payload: str) -> None:
        directory = os.path.dirname(self.path) or "."
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".gallery-", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_path, self.path)
            logger.debug("Wrote gallery record", path=self.path, size=len(payload))
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            logger.error("Failed to write gallery record", path=self.path, error=str(e))
            raise GalleryStorageError(f"Failed to write gallery record: {str(e)}")

    def clear(self) -> None:
        try:
            os.remove(self.path)
            logger.info("Removed gallery record", path=self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error("Failed to remove gallery record", path=self.path, error=str(e))
            raise GalleryStorageError(f"Failed to remove gallery record: {str(e)}")


class MemoryGalleryStore(GalleryStore):
    """Keeps the gallery record in process memory. Nothing survives a restart."""

    def __init__(self, payload: Optional[str] = None) -> None:
        self.payload = payload

    def read(self) -> Optional[str]:
        return self.payload

    def write(self, payload: str) -> None:
        self.payload = payload

    def clear(self) -> None:
        self.payload = None
