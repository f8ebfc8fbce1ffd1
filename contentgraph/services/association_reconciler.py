"""
Association Reconciler - Keeps Content.features and Feature.contents symmetric.

Feature references are compared by ID. Reconciling a content's features:
1. Diff current against desired (to_detach / to_attach, always disjoint)
2. Detach and attach concurrently, one Feature document per operation
3. Only when every operation succeeded, commit the desired set on the content

A failed operation fails the whole call. Features already updated are not
rolled back; IntegrityChecker can repair the asymmetry afterwards.
"""

from functools import partial

from pydantic import BaseModel, Field

from contentgraph.core.document_store.base import DocumentStore
from contentgraph.core.fanout import FanOutExecutor
from contentgraph.models.content import Content
from contentgraph.models.entity import pull, unique
from contentgraph.models.feature import Feature
from contentgraph.utils.locks import KeyedLock
from contentgraph.utils.logger import get_logger

logger = get_logger(__name__)


class FeatureDiff(BaseModel):
    """Difference between two feature ID sets."""

    to_detach: list[str] = Field(default_factory=list)
    to_attach: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_detach and not self.to_attach


def diff_features(current: list[str], desired: list[str]) -> FeatureDiff:
    """
    Compute which feature IDs to detach and attach.

    Args:
        current: Feature IDs currently on the content
        desired: Feature IDs the content should end up with

    Returns:
        FeatureDiff with to_detach = current - desired and
        to_attach = desired - current, each in first-seen order
    """
    current_set = set(current)
    desired_set = set(desired)
    return FeatureDiff(
        to_detach=[fid for fid in unique(current) if fid not in desired_set],
        to_attach=[fid for fid in unique(desired) if fid not in current_set],
    )


class AssociationReconciler:
    """Applies feature association changes to both sides of the edge."""

    def __init__(
        self,
        store: DocumentStore,
        executor: FanOutExecutor,
        locks: KeyedLock | None = None,
    ):
        """
        Initialize association reconciler.

        Args:
            store: Document store holding contents and features
            executor: Fan-out executor for per-feature operations
            locks: Per-document locks shared with the other services
        """
        self.store = store
        self.executor = executor
        self.locks = locks or KeyedLock()

    async def reconcile_features(
        self, content: Content, desired_feature_ids: list[str] | None
    ) -> list[str]:
        """
        Move a content's feature set to ``desired_feature_ids``.

        Args:
            content: Content to update (mutated and saved on success)
            desired_feature_ids: Target feature IDs; None leaves the content untouched

        Returns:
            The content's feature IDs after reconciliation

        Raises:
            NotFoundError: If a feature to attach doesn't exist
            PersistenceError: If a store operation fails
            FanOutError, PartialCascadeError: If several operations failed
        """
        if desired_feature_ids is None:
            return list(content.features)

        desired = unique(list(desired_feature_ids))
        diff = diff_features(content.features, desired)

        await self.executor.run_groups(
            {
                "detach_features": [
                    partial(self.detach_feature, feature_id, content.id)
                    for feature_id in diff.to_detach
                ],
                "attach_features": [
                    partial(self.attach_feature, feature_id, content.id)
                    for feature_id in diff.to_attach
                ],
            }
        )

        content.features = desired
        content.touch()
        await self.store.save(content)

        logger.bind(content_id=content.id, detached=diff.to_detach, attached=diff.to_attach).info(
            f"Reconciled features of {content.id}: "
            f"-{len(diff.to_detach)} +{len(diff.to_attach)}"
        )
        return list(content.features)

    async def attach_feature(self, feature_id: str, content_id: str) -> Feature:
        """
        Add ``content_id`` to a feature's contents (set-insert).

        Raises:
            NotFoundError: If the feature doesn't exist
        """
        async with self.locks.hold(f"{Feature.collection}:{feature_id}"):
            feature = await self.store.find_by_id(Feature, feature_id)
            if feature.attach_content(content_id):
                feature.touch()
                await self.store.save(feature)
                logger.debug(f"Attached {content_id} to feature {feature_id}")
            return feature

    async def detach_feature(self, feature_id: str, content_id: str) -> Feature | None:
        """
        Remove ``content_id`` from a feature's contents.

        A feature that no longer exists has nothing to detach from.

        Returns:
            The updated feature, or None if it doesn't exist
        """
        async with self.locks.hold(f"{Feature.collection}:{feature_id}"):
            feature = await self.store.get(Feature, feature_id)
            if feature is None:
                logger.bind(feature_id=feature_id, content_id=content_id).warning(
                    f"Feature {feature_id} not found while detaching {content_id}, skipping"
                )
                return None
            if feature.detach_content(content_id):
                feature.touch()
                await self.store.save(feature)
                logger.debug(f"Detached {content_id} from feature {feature_id}")
            return feature

    async def drop_feature(self, content_id: str, feature_id: str) -> Content | None:
        """
        Remove a feature reference from one content, leaving the feature alone.

        Used when the feature itself is being deleted.

        Returns:
            The updated content, or None if it doesn't exist
        """
        async with self.locks.hold(f"{Content.collection}:{content_id}"):
            content = await self.store.get(Content, content_id)
            if content is None:
                logger.bind(feature_id=feature_id, content_id=content_id).warning(
                    f"Content {content_id} not found while dropping feature {feature_id}"
                )
                return None
            if pull(content.features, feature_id):
                content.touch()
                await self.store.save(content)
            return content
