"""
Content Graph - Unified interface for the content graph operations.

Brings together:
- Document store & blob store
- Association and block reconciliation
- Removal cascades
- Integrity checking
"""

from pathlib import Path
from typing import Any

from contentgraph.config import Config
from contentgraph.core.blob_store.base import BlobStore
from contentgraph.core.document_store.base import DocumentStore
from contentgraph.core.factory import BlobStoreFactory, DocumentStoreFactory
from contentgraph.core.fanout import FanOutExecutor
from contentgraph.models.block import Block
from contentgraph.models.content import Content, ContentType
from contentgraph.models.feature import Feature
from contentgraph.models.image import Image, ImageFile
from contentgraph.services.association_reconciler import AssociationReconciler
from contentgraph.services.block_reconciler import ContentBlockReconciler
from contentgraph.services.cascade_controller import CascadeController
from contentgraph.services.integrity import IntegrityChecker
from contentgraph.utils.exceptions import ContentGraphError, ValidationError
from contentgraph.utils.id_generator import (
    generate_content_id,
    generate_feature_id,
    generate_image_id,
)
from contentgraph.utils.locks import KeyedLock
from contentgraph.utils.logger import get_logger

logger = get_logger(__name__)


class ContentGraph:
    """
    Unified content graph integrating all components.

    Features:
    - Reconcile content features and blocks
    - Cascading removal of contents, images and features
    - Image uploads through the blob store
    - Integrity validation and repair
    """

    def __init__(
        self,
        store: DocumentStore,
        blob_store: BlobStore,
        executor: FanOutExecutor | None = None,
        locks: KeyedLock | None = None,
    ):
        """
        Initialize Content Graph.

        Registers the removal hooks on ``store``.

        Args:
            store: Document store for contents, features and images
            blob_store: Blob storage for image files
            executor: Fan-out executor (default: unbounded, no deadline)
            locks: Per-document locks (default: enabled)
        """
        self.store = store
        self.blob_store = blob_store
        self.executor = executor or FanOutExecutor()
        self.locks = locks or KeyedLock()

        self.associations = AssociationReconciler(
            store=store,
            executor=self.executor,
            locks=self.locks,
        )
        self.blocks = ContentBlockReconciler(
            store=store,
            executor=self.executor,
            locks=self.locks,
        )
        self.cascade = CascadeController(
            store=store,
            blob_store=blob_store,
            executor=self.executor,
            associations=self.associations,
            blocks=self.blocks,
        )
        self.integrity = IntegrityChecker(
            store=store,
            associations=self.associations,
            locks=self.locks,
        )

        self.cascade.register()

    @classmethod
    def from_config(cls, config: Config) -> "ContentGraph":
        """
        Build a content graph and its collaborators from configuration.

        Args:
            config: Main configuration object

        Returns:
            ContentGraph instance (call ``initialize`` before use)
        """
        return cls(
            store=DocumentStoreFactory.create(config.store),
            blob_store=BlobStoreFactory.create(config.blob_store),
            executor=FanOutExecutor(
                max_concurrency=config.fanout.max_concurrency,
                timeout=config.fanout.timeout,
            ),
            locks=KeyedLock(enabled=config.fanout.serialize_item_updates),
        )

    async def initialize(self) -> None:
        """Initialize the document store."""
        await self.store.initialize()
        logger.info("Content graph ready")

    # ═══════════════════════════════════════════════════════════
    # CREATION & LOOKUP
    # ═══════════════════════════════════════════════════════════

    async def create_content(
        self,
        content_type: ContentType,
        title: str,
        layer: str,
        blocks: list[Block] | None = None,
        features: list[str] | None = None,
        **fields: Any,
    ) -> Content:
        """
        Create a content and link its initial features and image blocks.

        Args:
            content_type: Content type
            title: Content title
            layer: Owning layer ID
            blocks: Initial blocks (image blocks get their back-references set)
            features: Initial feature IDs (features get the inverse edge)
            **fields: Other Content fields (url, markdown, creator, tags)

        Returns:
            The persisted content
        """
        content = Content(id=generate_content_id(), type=content_type, title=title, layer=layer, **fields)
        await self.store.save(content)

        await self.associations.reconcile_features(content, features)
        await self.blocks.reconcile_blocks(content, blocks)

        logger.bind(content_id=content.id).info(f"Content created: {content.id}")
        return content

    async def create_feature(self, title: str = "", layer: str | None = None) -> Feature:
        """Create an empty feature."""
        feature = Feature(id=generate_feature_id(), title=title, layer=layer)
        await self.store.save(feature)
        return feature

    async def upload_image(
        self,
        source: str | Path,
        creator: str | None = None,
        base_url: str | None = None,
    ) -> Image:
        """
        Upload a file and create its Image document.

        Args:
            source: Local file to upload
            creator: Uploader user ID
            base_url: URL prefix for the stored name (default: blob store URI)

        Returns:
            The persisted image, not yet attached to any content

        Raises:
            BlobStoreError: If the upload fails
        """
        stored = await self.blob_store.upload(source)
        url = f"{base_url}{stored.name}" if base_url else stored.uri

        image = Image(
            id=generate_image_id(),
            creator=creator,
            file=ImageFile(name=stored.name, url=url),
        )
        await self.store.save(image)

        logger.bind(image_id=image.id, blob=stored.name).info(f"Image uploaded: {image.id}")
        return image

    async def load_content(self, content_id: str) -> Content:
        """
        Load a content.

        Raises:
            NotFoundError: If the content doesn't exist
        """
        return await self.store.find_by_id(Content, content_id)

    async def load_features(self, content: Content) -> list[Feature]:
        """Load the features a content lists, skipping missing ones."""
        features = []
        for feature_id in content.features:
            feature = await self.store.get(Feature, feature_id)
            if feature is not None:
                features.append(feature)
        return features

    async def list_contents(
        self,
        criteria: dict[str, Any] | None = None,
        page: int = 0,
        per_page: int = 20,
    ) -> list[Content]:
        """
        List contents, newest first.

        Args:
            criteria: Field filters (e.g. {"layer": "layer-1"})
            page: Zero-based page number
            per_page: Page size

        Returns:
            One page of contents
        """
        if page < 0 or per_page < 1:
            raise ValidationError(
                "page must be >= 0 and per_page >= 1",
                context={"page": page, "per_page": per_page},
            )
        return await self.store.query(
            Content,
            filters=criteria,
            order_by="created_at",
            descending=True,
            limit=per_page,
            offset=per_page * page,
        )

    # ═══════════════════════════════════════════════════════════
    # RECONCILIATION
    # ═══════════════════════════════════════════════════════════

    async def reconcile_features(
        self, content: Content | str, desired_feature_ids: list[str] | None
    ) -> Content:
        """
        Set a content's features, updating the inverse edge on every feature.

        Args:
            content: Content or content ID
            desired_feature_ids: Target feature IDs (None = no change)

        Returns:
            The updated content
        """
        content = await self._resolve(content)
        await self._logged(
            "reconcile_features",
            content.id,
            self.associations.reconcile_features(content, desired_feature_ids),
        )
        return content

    async def reconcile_blocks(self, content: Content | str, desired_blocks: list[Block] | None) -> Content:
        """
        Set a content's blocks, updating image back-references and deleting dropped images.

        Args:
            content: Content or content ID
            desired_blocks: Target blocks (None = no change)

        Returns:
            The updated content
        """
        content = await self._resolve(content)
        await self._logged(
            "reconcile_blocks",
            content.id,
            self.blocks.reconcile_blocks(content, desired_blocks),
        )
        return content

    # ═══════════════════════════════════════════════════════════
    # REMOVAL
    # ═══════════════════════════════════════════════════════════

    async def remove_content(self, content: Content | str) -> Content:
        """
        Delete a content, its images, and its feature associations.

        Returns:
            The removed content

        Raises:
            NotFoundError: If the content doesn't exist
            FanOutError, PartialCascadeError: If the cascade failed (content kept)
        """
        content = await self._resolve(content)
        await self._logged("remove_content", content.id, self.store.remove(content))
        logger.bind(content_id=content.id).info(f"Content removed: {content.id}")
        return content

    async def remove_image(self, image: Image | str) -> Image:
        """
        Delete an image, stripping its blocks from the owning content.

        Returns:
            The removed image, in DELETED state

        Raises:
            NotFoundError: If the image doesn't exist
            PartialCascadeError: If only one of block stripping / blob removal succeeded
        """
        if isinstance(image, str):
            image = await self.store.find_by_id(Image, image)
        await self._logged("remove_image", image.id, self.store.remove(image))
        image.mark_deleted()
        logger.bind(image_id=image.id).info(f"Image removed: {image.id}")
        return image

    async def remove_feature(self, feature: Feature | str) -> Feature:
        """
        Delete a feature, dropping it from every content listing it.

        Returns:
            The removed feature
        """
        if isinstance(feature, str):
            feature = await self.store.find_by_id(Feature, feature)
        await self._logged("remove_feature", feature.id, self.store.remove(feature))
        logger.bind(feature_id=feature.id).info(f"Feature removed: {feature.id}")
        return feature

    # ═══════════════════════════════════════════════════════════
    # STATISTICS & LIFECYCLE
    # ═══════════════════════════════════════════════════════════

    async def get_statistics(self) -> dict[str, Any]:
        """
        Get document counts.

        Returns:
            Statistics dictionary
        """
        return {
            "contents": await self.store.count(Content),
            "features": await self.store.count(Feature),
            "images": await self.store.count(Image),
        }

    async def close(self) -> None:
        """Close all connections."""
        await self.store.close()
        await self.blob_store.close()
        logger.info("Content graph shut down")

    # HELPER METHODS

    async def _resolve(self, content: Content | str) -> Content:
        if isinstance(content, str):
            return await self.store.find_by_id(Content, content)
        return content

    async def _logged(self, operation: str, entity_id: str, awaitable) -> Any:
        try:
            return await awaitable
        except ContentGraphError as e:
            logger.bind(
                operation=operation,
                id=entity_id,
                error_type=type(e).__name__,
                context=e.context,
            ).error(f"{operation} failed for {entity_id}: {e}")
            raise
