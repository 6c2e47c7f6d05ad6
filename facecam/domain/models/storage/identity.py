"""Storage-specific identity models."""
from datetime import datetime
from typing import List, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt

from facecam.domain.entities.face import Identity


class StoredIdentityRecord(BaseModel):
    """One gallery entry as it appears in the persisted JSON record.

    Field names follow the stored layout:
    `{name, descriptors, imageSrc, age, gender, timestamp}`.
    """
    name: str = Field(..., description="Identity name", min_length=1)
    # Strict so stringified numbers are rejected rather than coerced
    descriptors: List[List[Union[StrictFloat, StrictInt]]] = Field(
        ..., description="Descriptor vectors", min_length=1
    )
    image_src: str = Field(..., alias="imageSrc", description="Representative image data URL")
    age: str = Field("", description="Age display label")
    gender: str = Field("", description="Gender display label")
    timestamp: int = Field(..., description="Enrollment time in epoch milliseconds")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_identity(cls, identity: Identity) -> "StoredIdentityRecord":
        """Create a storage record from an identity entity.

        Args:
            identity: Gallery entry to persist

        Returns:
            StoredIdentityRecord with descriptors as plain float lists
        """
        return cls(
            name=identity.name,
            descriptors=[descriptor.tolist() for descriptor in identity.descriptors],
            image_src=identity.image_src,
            age=identity.age_label or "",
            gender=identity.gender_label or "",
            timestamp=int(identity.created_at.timestamp() * 1000),
        )

    def to_identity(self) -> Identity:
        """Rebuild the identity entity with float32 descriptor vectors."""
        return Identity(
            name=self.name,
            descriptors=self.descriptors,
            image_src=self.image_src,
            age_label=self.age or None,
            gender_label=self.gender or None,
            created_at=datetime.fromtimestamp(self.timestamp / 1000),
        )
