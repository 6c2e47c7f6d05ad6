"""Gallery storage interface."""
from abc import ABC, abstractmethod
from typing import Optional


class GalleryStore(ABC):
    """Interface for the single named record that holds the serialized gallery."""

    @abstractmethod
    def read(self) -> Optional[str]:
        """
        Read the stored gallery record.

        Returns:
            The JSON text, or None when nothing has been stored yet

        Raises:
            GalleryStorageError: If the record exists but cannot be read
            PersistenceCorruptionError: If the record is not valid text
        """
        pass

    @abstractmethod
    def write(self, payload: str) -> None:
        """
        Replace the stored gallery record.

        Args:
            payload: JSON text of the full gallery

        Raises:
            GalleryStorageError: If the record cannot be written
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """
        Remove the stored gallery record. Removing a missing record is not an error.

        Raises:
            GalleryStorageError: If the record cannot be removed
        """
        pass
