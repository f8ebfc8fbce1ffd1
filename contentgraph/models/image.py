"""
Image model with its removal lifecycle.
"""

from datetime import datetime
from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, Field

from contentgraph.models.entity import Entity


class ImageState(str, Enum):
    """
    Removal lifecycle of an Image.

    ATTACHED -> DETACHING -> DELETED. An image may only be hard-deleted
    after passing through DETACHING, where its back-reference is nulled.
    Removal hooks check this state before touching the owning content.
    """

    ATTACHED = "attached"
    DETACHING = "detaching"
    DELETED = "deleted"


class ImageFile(BaseModel):
    """Stored file descriptor."""

    name: str | None = None
    url: str | None = None


class Image(Entity):
    """
    Uploaded image.

    ``content`` is a weak back-reference to the content whose blocks embed
    this image. It is used for lookup only; the image's lifetime ends
    when it is explicitly removed.
    """

    collection: ClassVar[str] = "images"

    creator: str | None = Field(default=None, description="Uploader user ID")
    content: str | None = Field(default=None, description="Owning content ID")
    state: ImageState = Field(default=ImageState.ATTACHED, description="Removal lifecycle")
    uploaded_at: datetime = Field(default_factory=datetime.now)
    file: ImageFile = Field(default_factory=ImageFile)

    def begin_detach(self) -> None:
        """Null the back-reference and enter DETACHING."""
        self.content = None
        self.state = ImageState.DETACHING
        self.touch()

    def mark_deleted(self) -> None:
        self.content = None
        self.state = ImageState.DELETED
