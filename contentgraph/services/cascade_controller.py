"""
Cascade Controller - Side effects of deleting contents, images and features.

Registers one pre-removal hook per collection on the document store:

Content removal (two fan-outs, concurrent with each other):
- every image owned by the content is retired: back-reference nulled and
  DETACHING persisted, then hard-deleted
- the content ID is detached from every feature listing it

Image removal (two independent best-effort steps, both always attempted):
- if the image is still ATTACHED to a content, its blocks are stripped from
  the owner through ContentBlockReconciler, then DETACHING is persisted
- the stored blob is deleted

Feature removal:
- the feature ID is dropped from every content listing it

An image reaches its removal hook in DETACHING only once its blocks are
gone or being handled by the content side, and stripping an image never retires that
same image, so the two hooks never re-enter each other. A removal
interrupted by a failure converges when retried.
"""

from functools import partial

from contentgraph.core.blob_store.base import BlobStore
from contentgraph.core.document_store.base import DocumentStore
from contentgraph.core.fanout import FanOutExecutor
from contentgraph.models.content import Content
from contentgraph.models.entity import unique
from contentgraph.models.feature import Feature
from contentgraph.models.image import Image, ImageState
from contentgraph.services.association_reconciler import AssociationReconciler
from contentgraph.services.block_reconciler import ContentBlockReconciler
from contentgraph.utils.logger import get_logger

logger = get_logger(__name__)


class CascadeController:
    """Runs the removal cascades of the content graph."""

    def __init__(
        self,
        store: DocumentStore,
        blob_store: BlobStore,
        executor: FanOutExecutor,
        associations: AssociationReconciler,
        blocks: ContentBlockReconciler,
        scan_limit: int = 1000,
    ):
        """
        Initialize cascade controller.

        Args:
            store: Document store the hooks are registered on
            blob_store: Blob storage for image files
            executor: Fan-out executor for per-item side effects
            associations: Reconciler for the Content <-> Feature edge
            blocks: Reconciler for content blocks and image back-references
            scan_limit: Max inverse-edge documents looked up per cascade
        """
        self.store = store
        self.blob_store = blob_store
        self.executor = executor
        self.associations = associations
        self.blocks = blocks
        self.scan_limit = scan_limit

    def register(self) -> None:
        """Register the removal hooks on the document store."""
        self.store.register_pre_remove(Content, self.on_content_remove)
        self.store.register_pre_remove(Image, self.on_image_remove)
        self.store.register_pre_remove(Feature, self.on_feature_remove)

    async def on_content_remove(self, content: Content) -> None:
        """
        Pre-removal hook for contents.

        Besides the images and features the content itself references,
        documents still pointing at the content through a stale inverse
        edge are cleaned up as well.

        Raises:
            The single failure's own exception, FanOutError or PartialCascadeError
        """
        owned_images = await self.store.query(
            Image, filters={"content": content.id}, limit=self.scan_limit
        )
        listing_features = await self.store.query(
            Feature, filters={"contents": content.id}, limit=self.scan_limit
        )

        image_ids = unique(content.image_ids() + [image.id for image in owned_images])
        feature_ids = unique(list(content.features) + [feature.id for feature in listing_features])

        await self.executor.run_groups(
            {
                "retire_images": [
                    partial(self.blocks.retire_image, image_id) for image_id in image_ids
                ],
                "detach_features": [
                    partial(self.associations.detach_feature, feature_id, content.id)
                    for feature_id in feature_ids
                ],
            }
        )

        logger.bind(content_id=content.id, images=image_ids, features=feature_ids).info(
            f"Cascaded removal of content {content.id}: "
            f"{len(image_ids)} images, {len(feature_ids)} features"
        )

    async def on_image_remove(self, image: Image) -> None:
        """
        Pre-removal hook for images.

        Raises:
            The single failure's own exception or PartialCascadeError
        """
        steps = []
        if image.state is ImageState.ATTACHED and image.content is not None:
            steps.append(partial(self._detach_from_owner, image))
        elif image.state is ImageState.ATTACHED:
            image.begin_detach()
        if image.file.name:
            steps.append(partial(self.blob_store.remove, [image.file.name]))

        await self.executor.run_steps(f"remove_image({image.id})", steps)

    async def on_feature_remove(self, feature: Feature) -> None:
        """
        Pre-removal hook for features.

        Raises:
            The single failure's own exception, FanOutError or PartialCascadeError
        """
        listing_contents = await self.store.query(
            Content, filters={"features": feature.id}, limit=self.scan_limit
        )
        content_ids = unique(list(feature.contents) + [content.id for content in listing_contents])

        await self.executor.run(
            "drop_feature",
            [
                partial(self.associations.drop_feature, content_id, feature.id)
                for content_id in content_ids
            ],
        )

        logger.bind(feature_id=feature.id, contents=content_ids).info(
            f"Cascaded removal of feature {feature.id}: {len(content_ids)} contents"
        )

    async def _detach_from_owner(self, image: Image) -> None:
        """
        Strip the image's blocks from its owner, then persist DETACHING.

        The image keeps its back-reference until the owner is saved, so a
        removal retried after a failed strip still finds the owner.
        """
        owner_id = image.content
        owner = await self.store.get(Content, owner_id)
        if owner is None:
            logger.bind(image_id=image.id, content_id=owner_id).warning(
                f"Owner {owner_id} of image {image.id} not found, nothing to strip"
            )
        else:
            await self.blocks.strip_image_block(owner, image.id)
            logger.debug(f"Stripped image {image.id} from content {owner_id}")

        image.begin_detach()
        await self.store.save(image)
