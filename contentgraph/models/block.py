"""
Typed content blocks.

A Content body is an ordered list of blocks, each tagged by ``type``.
Only the image block carries relational behavior (it references an Image
document); every other block kind is an opaque payload kept verbatim.
"""

import json
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag

IMAGE_BLOCK_TYPE = "image"


class BlockFile(BaseModel):
    """File descriptor embedded in an image block."""

    model_config = ConfigDict(extra="allow")

    url: str | None = None


class ImageBlockData(BaseModel):
    """Payload of an image block."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Referenced Image ID")
    file: BlockFile = Field(default_factory=BlockFile)
    caption: str | None = None


class ImageBlock(BaseModel):
    """Block referencing an Image document."""

    type: Literal["image"] = IMAGE_BLOCK_TYPE
    data: ImageBlockData

    @property
    def image_id(self) -> str:
        return self.data.id

    def fingerprint(self) -> str:
        return block_fingerprint(self)


class OpaqueBlock(BaseModel):
    """Any non-image block (text, heading, video, quote, list...)."""

    type: str
    data: dict[str, Any] = Field(default_factory=dict)

    def fingerprint(self) -> str:
        return block_fingerprint(self)


def _block_tag(value: Any) -> str:
    if isinstance(value, dict):
        kind = value.get("type")
    else:
        kind = getattr(value, "type", None)
    return "image" if kind == IMAGE_BLOCK_TYPE else "opaque"


Block = Annotated[
    Union[Annotated[ImageBlock, Tag("image")], Annotated[OpaqueBlock, Tag("opaque")]],
    Discriminator(_block_tag),
]


def block_fingerprint(block: ImageBlock | OpaqueBlock) -> str:
    """
    Canonical serialized form of a block.

    Blocks are embedded values, so two blocks are the same block exactly
    when their serialized payloads are equal.
    """
    return json.dumps(block.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))


def image_blocks(blocks: list[ImageBlock | OpaqueBlock]) -> list[ImageBlock]:
    """Image blocks of a block sequence, in order."""
    return [block for block in blocks if isinstance(block, ImageBlock)]
