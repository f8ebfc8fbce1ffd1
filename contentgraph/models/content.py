"""
Content model: a typed piece of layer content with a block body.
"""

from enum import Enum
from typing import ClassVar

from pydantic import Field

from contentgraph.models.block import Block, ImageBlock, image_blocks
from contentgraph.models.entity import Entity


class ContentType(str, Enum):
    """Kinds of content a layer can hold."""

    MARKDOWN = "Markdown"
    POST = "Post"
    VIDEO = "Video"
    IMAGE_GALLERY = "Image Gallery"


class Content(Entity):
    """
    Content attached to a layer.

    Relations:
    - features: Feature IDs this content is listed under. The inverse edge
      is Feature.contents and is kept symmetric by AssociationReconciler.
    - blocks: ordered body. Image blocks reference Image documents whose
      back-reference points here; ContentBlockReconciler keeps both sides
      consistent.
    """

    collection: ClassVar[str] = "contents"

    type: ContentType = Field(..., description="Content type")
    title: str = Field(..., min_length=1, description="Content title")
    url: str | None = Field(default=None, description="Optional external URL")
    markdown: str | None = Field(default=None, description="Markdown body")
    blocks: list[Block] = Field(default_factory=list, description="Ordered typed blocks")
    features: list[str] = Field(default_factory=list, description="Feature IDs")
    layer: str = Field(..., description="Owning layer ID")
    creator: str | None = Field(default=None, description="Creator user ID")
    tags: list[str] = Field(default_factory=list)

    def image_blocks(self) -> list[ImageBlock]:
        return image_blocks(self.blocks)

    def image_ids(self) -> list[str]:
        """IDs of the images referenced by this content's blocks, in block order."""
        return list(dict.fromkeys(block.image_id for block in self.image_blocks()))
