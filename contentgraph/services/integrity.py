"""
Integrity Checker - Detects and repairs broken edges around a content.

Reconciliations don't roll back, so a failed call can leave:
- a feature listed on the content that doesn't list the content back
- a feature listing the content that the content doesn't list
- a feature reference to a feature that no longer exists
- an image pointing at the content without a block embedding it
- an image block referencing an image that no longer exists
- an image block whose image is owned by another content

Repair re-applies the missing edges. Images owned by another content are
only reported; which side is right needs a human decision.
"""

from typing import Any

from pydantic import BaseModel, Field

from contentgraph.core.document_store.base import DocumentStore
from contentgraph.models.block import ImageBlock
from contentgraph.models.content import Content
from contentgraph.models.entity import pull
from contentgraph.models.feature import Feature
from contentgraph.models.image import Image
from contentgraph.services.association_reconciler import AssociationReconciler
from contentgraph.utils.locks import KeyedLock
from contentgraph.utils.logger import get_logger

logger = get_logger(__name__)


class IntegrityReport(BaseModel):
    """Invariant violations found around one content."""

    content_id: str
    missing_inverse_features: list[str] = Field(default_factory=list)
    stale_feature_refs: list[str] = Field(default_factory=list)
    missing_features: list[str] = Field(default_factory=list)
    orphaned_images: list[str] = Field(default_factory=list)
    missing_images: list[str] = Field(default_factory=list)
    foreign_images: list[str] = Field(default_factory=list)

    @property
    def consistent(self) -> bool:
        return not any(
            (
                self.missing_inverse_features,
                self.stale_feature_refs,
                self.missing_features,
                self.orphaned_images,
                self.missing_images,
                self.foreign_images,
            )
        )

    @property
    def repairable(self) -> bool:
        return not self.foreign_images


class IntegrityChecker:
    """Validates and repairs the invariants of the content graph."""

    def __init__(
        self,
        store: DocumentStore,
        associations: AssociationReconciler,
        locks: KeyedLock | None = None,
        scan_limit: int = 1000,
    ):
        self.store = store
        self.associations = associations
        self.locks = locks or KeyedLock()
        self.scan_limit = scan_limit

    async def check_content(self, content_id: str) -> IntegrityReport:
        """
        Validate feature symmetry and image ownership for one content.

        Args:
            content_id: Content to check

        Returns:
            IntegrityReport listing every violation found

        Raises:
            NotFoundError: If the content doesn't exist
        """
        content = await self.store.find_by_id(Content, content_id)
        report = IntegrityReport(content_id=content_id)

        for feature_id in content.features:
            feature = await self.store.get(Feature, feature_id)
            if feature is None:
                report.missing_features.append(feature_id)
            elif content_id not in feature.contents:
                report.missing_inverse_features.append(feature_id)

        listing = await self.store.query(
            Feature, filters={"contents": content_id}, limit=self.scan_limit
        )
        report.stale_feature_refs = [f.id for f in listing if f.id not in content.features]

        block_image_ids = content.image_ids()
        for image_id in block_image_ids:
            image = await self.store.get(Image, image_id)
            if image is None:
                report.missing_images.append(image_id)
            elif image.content not in (None, content_id):
                report.foreign_images.append(image_id)

        owned = await self.store.query(Image, filters={"content": content_id}, limit=self.scan_limit)
        report.orphaned_images = [i.id for i in owned if i.id not in block_image_ids]

        if not report.consistent:
            logger.bind(content_id=content_id, report=report.model_dump()).warning(
                f"Content {content_id} violates graph invariants"
            )
        return report

    async def repair_content(self, content_id: str) -> IntegrityReport:
        """
        Repair the violations found by ``check_content``.

        - missing inverse edges are attached on the feature
        - stale inverse edges are detached from the feature
        - references to missing features and blocks of missing images are dropped
        - orphaned images get their back-reference cleared (they are not deleted)

        Args:
            content_id: Content to repair

        Returns:
            The report after repair
        """
        report = await self.check_content(content_id)
        if report.consistent:
            return report

        for feature_id in report.missing_inverse_features:
            await self.associations.attach_feature(feature_id, content_id)
        for feature_id in report.stale_feature_refs:
            await self.associations.detach_feature(feature_id, content_id)
        for image_id in report.orphaned_images:
            await self._clear_back_reference(image_id, content_id)

        if report.missing_features or report.missing_images:
            async with self.locks.hold(f"{Content.collection}:{content_id}"):
                content = await self.store.find_by_id(Content, content_id)
                for feature_id in report.missing_features:
                    pull(content.features, feature_id)
                content.blocks = [
                    block
                    for block in content.blocks
                    if not (isinstance(block, ImageBlock) and block.image_id in report.missing_images)
                ]
                content.touch()
                await self.store.save(content)

        logger.bind(content_id=content_id).info(f"Repaired content {content_id}")
        return await self.check_content(content_id)

    async def check_and_repair_batch(self, content_ids: list[str]) -> dict[str, Any]:
        """
        Validate and repair multiple contents.

        Args:
            content_ids: Contents to check

        Returns:
            Dict with counts: {"validated", "consistent", "repaired", "failed"}
        """
        results = {"validated": 0, "consistent": 0, "repaired": 0, "failed": 0}

        for content_id in content_ids:
            try:
                report = await self.check_content(content_id)
                results["validated"] += 1
                if report.consistent:
                    results["consistent"] += 1
                    continue

                after = await self.repair_content(content_id)
                if after.consistent:
                    results["repaired"] += 1
                else:
                    results["failed"] += 1
            except Exception as e:
                logger.error(f"Validation/repair failed for {content_id}: {e}")
                results["failed"] += 1

        logger.info(
            f"Batch integrity check: {results['consistent']} consistent, "
            f"{results['repaired']} repaired, {results['failed']} failed"
        )
        return results

    async def _clear_back_reference(self, image_id: str, content_id: str) -> None:
        async with self.locks.hold(f"{Image.collection}:{image_id}"):
            image = await self.store.get(Image, image_id)
            if image is not None and image.content == content_id:
                image.content = None
                image.touch()
                await self.store.save(image)
