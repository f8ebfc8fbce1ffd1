"""
Content Block Reconciler - Keeps image blocks and Image back-references consistent.

Blocks are embedded values, so they are diffed structurally (canonical
serialized payload), not by identity. Feature references in
AssociationReconciler are diffed by ID instead.

Only image blocks have side effects:
- an image whose last block disappeared is retired (detached, then deleted)
- an image whose block was added gets its back-reference set to the content
An image block whose payload changed but still references the same image
counts as an edit: the image is re-attached, never deleted.
"""

from collections.abc import Collection
from functools import partial

from pydantic import BaseModel, Field

from contentgraph.core.document_store.base import DocumentStore
from contentgraph.core.fanout import FanOutExecutor
from contentgraph.models.block import Block, ImageBlock, block_fingerprint, image_blocks
from contentgraph.models.content import Content
from contentgraph.models.entity import unique
from contentgraph.models.image import Image, ImageState
from contentgraph.utils.exceptions import ValidationError
from contentgraph.utils.locks import KeyedLock
from contentgraph.utils.logger import get_logger

logger = get_logger(__name__)


class BlockDiff(BaseModel):
    """Image-block difference between two block sequences."""

    removed: list[ImageBlock] = Field(default_factory=list)
    added: list[ImageBlock] = Field(default_factory=list)
    retire_image_ids: list[str] = Field(default_factory=list)
    attach_image_ids: list[str] = Field(default_factory=list)


def diff_image_blocks(current: list[Block], desired: list[Block]) -> BlockDiff:
    """
    Compute image-block changes between two block sequences.

    Non-image blocks are ignored.

    Args:
        current: Blocks currently on the content
        desired: Blocks the content should end up with

    Returns:
        BlockDiff. ``retire_image_ids`` and ``attach_image_ids`` are disjoint.
    """
    current_images = image_blocks(current)
    desired_images = image_blocks(desired)
    current_prints = {block_fingerprint(block) for block in current_images}
    desired_prints = {block_fingerprint(block) for block in desired_images}

    removed = [block for block in current_images if block_fingerprint(block) not in desired_prints]
    added = [block for block in desired_images if block_fingerprint(block) not in current_prints]
    still_referenced = {block.image_id for block in desired_images}

    return BlockDiff(
        removed=removed,
        added=added,
        retire_image_ids=unique(
            [block.image_id for block in removed if block.image_id not in still_referenced]
        ),
        attach_image_ids=unique([block.image_id for block in added]),
    )


class ContentBlockReconciler:
    """Applies block changes and their image side effects."""

    def __init__(
        self,
        store: DocumentStore,
        executor: FanOutExecutor,
        locks: KeyedLock | None = None,
    ):
        self.store = store
        self.executor = executor
        self.locks = locks or KeyedLock()

    async def reconcile_blocks(
        self,
        content: Content,
        desired_blocks: list[Block] | None,
        removing: Collection[str] = (),
    ) -> list[Block]:
        """
        Move a content's blocks to ``desired_blocks``.

        Args:
            content: Content to update (mutated and saved on success)
            desired_blocks: Target block sequence; None leaves the content untouched
            removing: Images whose removal is already in progress; their
                dropped blocks don't retire them again

        Returns:
            The content's blocks after reconciliation

        Raises:
            NotFoundError: If an added block references a missing image
            ValidationError: If an added image belongs to another content
            PersistenceError: If a store operation fails
            FanOutError, PartialCascadeError: If several operations failed
        """
        if desired_blocks is None:
            return list(content.blocks)

        diff = diff_image_blocks(content.blocks, desired_blocks)

        await self.executor.run_groups(
            {
                "retire_images": [
                    partial(self.retire_image, image_id)
                    for image_id in diff.retire_image_ids
                    if image_id not in removing
                ],
                "attach_images": [
                    partial(self.attach_image, image_id, content.id)
                    for image_id in diff.attach_image_ids
                ],
            }
        )

        content.blocks = list(desired_blocks)
        content.touch()
        await self.store.save(content)

        logger.bind(
            content_id=content.id,
            retired=diff.retire_image_ids,
            attached=diff.attach_image_ids,
        ).info(
            f"Reconciled blocks of {content.id}: "
            f"-{len(diff.retire_image_ids)} +{len(diff.attach_image_ids)} images"
        )
        return list(content.blocks)

    async def strip_image_block(self, content: Content, image_id: str) -> list[Block]:
        """
        Remove every block referencing ``image_id`` and persist the content.

        Used by the image removal hook; the image itself is not retired.

        Args:
            content: Owning content
            image_id: Image whose blocks are dropped

        Returns:
            The content's blocks afterwards
        """
        desired = [
            block
            for block in content.blocks
            if not (isinstance(block, ImageBlock) and block.image_id == image_id)
        ]
        return await self.reconcile_blocks(content, desired, removing={image_id})

    async def attach_image(self, image_id: str, content_id: str) -> Image:
        """
        Point an image's back-reference at ``content_id``.

        Raises:
            NotFoundError: If the image doesn't exist
            ValidationError: If the image is being removed or owned by another content
        """
        async with self.locks.hold(f"{Image.collection}:{image_id}"):
            image = await self.store.find_by_id(Image, image_id)

            if image.state is not ImageState.ATTACHED:
                raise ValidationError(
                    f"Image {image_id} is being removed and cannot be attached",
                    context={"image_id": image_id, "state": image.state.value},
                )
            if image.content == content_id:
                return image
            if image.content is not None:
                raise ValidationError(
                    f"Image {image_id} already belongs to content {image.content}",
                    context={"image_id": image_id, "owner": image.content, "content_id": content_id},
                )

            image.content = content_id
            image.touch()
            await self.store.save(image)
            logger.debug(f"Attached image {image_id} to {content_id}")
            return image

    async def retire_image(self, image_id: str) -> Image | None:
        """
        Detach an image from its content, then hard-delete it.

        The back-reference is nulled and DETACHING persisted before the
        delete, so the image's own removal hook skips block reconciliation.
        An image found already DETACHING is left over from an interrupted
        removal and is deleted as well. The image lock is held until the
        delete finishes, so concurrent retirements delete it only once.

        Returns:
            The deleted image, or None if there was nothing to delete
        """
        async with self.locks.hold(f"{Image.collection}:{image_id}"):
            image = await self.store.get(Image, image_id)
            if image is None:
                logger.bind(image_id=image_id).warning(
                    f"Image {image_id} not found while retiring, skipping"
                )
                return None

            if image.state is ImageState.ATTACHED:
                image.begin_detach()
                await self.store.save(image)
            else:
                logger.bind(image_id=image_id).debug(
                    f"Image {image_id} already {image.state.value}, resuming removal"
                )

            await self.store.remove(image)

        image.mark_deleted()
        logger.bind(image_id=image_id).debug(f"Retired image {image_id}")
        return image
