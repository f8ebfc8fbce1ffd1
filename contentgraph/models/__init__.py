"""
Data models for contentgraph.

Core models:
- Content: typed layer content with a block body and feature associations
- Feature: groups contents (inverse edge of Content.features)
- Image: uploaded image with a weak back-reference to its owning content
- Block: tagged union of ImageBlock and OpaqueBlock
"""

from contentgraph.models.block import (
    IMAGE_BLOCK_TYPE,
    Block,
    BlockFile,
    ImageBlock,
    ImageBlockData,
    OpaqueBlock,
    block_fingerprint,
    image_blocks,
)
from contentgraph.models.content import Content, ContentType
from contentgraph.models.entity import Entity
from contentgraph.models.feature import Feature
from contentgraph.models.image import Image, ImageFile, ImageState

__all__ = [
    # Base
    "Entity",
    # Content models
    "Content",
    "ContentType",
    "Feature",
    "Image",
    "ImageFile",
    "ImageState",
    # Block models
    "Block",
    "BlockFile",
    "ImageBlock",
    "ImageBlockData",
    "OpaqueBlock",
    "IMAGE_BLOCK_TYPE",
    "block_fingerprint",
    "image_blocks",
]
