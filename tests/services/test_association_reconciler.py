"""
Tests for AssociationReconciler.

Tests cover:
1. Feature diffing
2. Reconciling a content's feature set (symmetry on both sides)
3. Idempotence and no-op updates
4. Failure behavior (no commit, no rollback)
"""

import asyncio

import pytest

from contentgraph.core.fanout import FanOutExecutor
from contentgraph.models import Content, Feature
from contentgraph.services.association_reconciler import AssociationReconciler, diff_features
from contentgraph.utils.exceptions import NotFoundError, PartialCascadeError


class TestDiffFeatures:
    """Tests for diff_features."""

    def test_detach_and_attach(self):
        diff = diff_features(["f1", "f2"], ["f2", "f3"])

        assert diff.to_detach == ["f1"]
        assert diff.to_attach == ["f3"]

    def test_sets_are_disjoint(self):
        diff = diff_features(["a", "b", "c", "a"], ["c", "d", "a", "d"])

        assert set(diff.to_detach).isdisjoint(diff.to_attach)
        assert diff.to_detach == ["b"]
        assert diff.to_attach == ["d"]

    def test_identical_sets_are_empty(self):
        assert diff_features(["f1", "f2"], ["f2", "f1"]).is_empty


@pytest.mark.asyncio
class TestReconcileFeatures:
    """Tests for reconcile_features."""

    @pytest.fixture
    def reconciler(self, store, locks):
        return AssociationReconciler(store=store, executor=FanOutExecutor(), locks=locks)

    async def test_swap_features(self, reconciler, store, make_content, make_feature):
        """Test moving a content from {f1, f2} to {f2, f3}."""
        content = await make_content("c1", features=["f1", "f2"])
        await make_feature("f1", contents=["c1"])
        await make_feature("f2", contents=["c1"])
        await make_feature("f3")

        result = await reconciler.reconcile_features(content, ["f2", "f3"])

        assert result == ["f2", "f3"]
        assert "c1" not in (await store.get(Feature, "f1")).contents
        assert "c1" in (await store.get(Feature, "f2")).contents
        assert "c1" in (await store.get(Feature, "f3")).contents
        assert (await store.get(Content, "c1")).features == ["f2", "f3"]

    async def test_attach_first_feature(self, reconciler, store, make_content, make_feature):
        content = await make_content("c1")
        await make_feature("f1")

        await reconciler.reconcile_features(content, ["f1"])

        assert (await store.get(Feature, "f1")).contents == ["c1"]
        assert (await store.get(Content, "c1")).features == ["f1"]

    async def test_clear_features(self, reconciler, store, make_content, make_feature):
        content = await make_content("c1", features=["f1"])
        await make_feature("f1", contents=["c1", "c9"])

        await reconciler.reconcile_features(content, [])

        assert (await store.get(Feature, "f1")).contents == ["c9"]
        assert (await store.get(Content, "c1")).features == []

    async def test_none_leaves_content_untouched(self, reconciler, recorder, make_content):
        content = await make_content("c1", features=["f1"])
        recorder.reset()

        result = await reconciler.reconcile_features(content, None)

        assert result == ["f1"]
        assert recorder.saves == []

    async def test_identical_set_only_saves_content(
        self, reconciler, recorder, make_content, make_feature
    ):
        """Test that an unchanged set issues no feature writes."""
        content = await make_content("c1", features=["f1", "f2"])
        await make_feature("f1", contents=["c1"])
        await make_feature("f2", contents=["c1"])
        recorder.reset()

        await reconciler.reconcile_features(content, ["f2", "f1"])

        assert recorder.saves == [("contents", "c1")]

    async def test_idempotent(self, reconciler, store, make_content, make_feature):
        content = await make_content("c1")
        await make_feature("f1")

        await reconciler.reconcile_features(content, ["f1"])
        await reconciler.reconcile_features(content, ["f1"])

        assert (await store.get(Feature, "f1")).contents == ["c1"]

    async def test_duplicate_desired_ids(self, reconciler, store, make_content, make_feature):
        content = await make_content("c1")
        await make_feature("f1")

        result = await reconciler.reconcile_features(content, ["f1", "f1"])

        assert result == ["f1"]
        assert (await store.get(Feature, "f1")).contents == ["c1"]

    async def test_attach_missing_feature(self, reconciler, store, make_content):
        """Test that attaching a missing feature fails and commits nothing on the content."""
        content = await make_content("c1")

        with pytest.raises(NotFoundError):
            await reconciler.reconcile_features(content, ["ghost"])

        assert (await store.get(Content, "c1")).features == []

    async def test_feature_id_with_braces(self, reconciler, store, make_content):
        """Test that an ID containing braces fails with NotFoundError, not a log formatting error."""
        content = await make_content("c1")

        with pytest.raises(NotFoundError):
            await reconciler.reconcile_features(content, ["{bad}"])

        assert (await store.get(Content, "c1")).features == []

    async def test_detach_missing_feature_is_skipped(self, reconciler, store, make_content):
        content = await make_content("c1", features=["ghost"])

        await reconciler.reconcile_features(content, [])

        assert (await store.get(Content, "c1")).features == []

    async def test_partial_failure_is_not_rolled_back(
        self, reconciler, store, make_content, make_feature
    ):
        """Test that successful feature writes stay when a sibling fails."""
        content = await make_content("c1", features=["f1"])
        await make_feature("f1", contents=["c1"])
        await make_feature("f2")

        with pytest.raises(PartialCascadeError) as exc_info:
            await reconciler.reconcile_features(content, ["f2", "ghost"])

        assert isinstance(exc_info.value.first, NotFoundError)
        # f1 detached and f2 attached, but the content keeps its old set
        assert (await store.get(Feature, "f1")).contents == []
        assert (await store.get(Feature, "f2")).contents == ["c1"]
        assert (await store.get(Content, "c1")).features == ["f1"]

    async def test_concurrent_attach_to_same_feature(self, reconciler, store, make_content, make_feature):
        """Test that two contents attaching the same feature both land."""
        first = await make_content("c1")
        second = await make_content("c2")
        await make_feature("f1")

        await asyncio.gather(
            reconciler.reconcile_features(first, ["f1"]),
            reconciler.reconcile_features(second, ["f1"]),
        )

        assert sorted((await store.get(Feature, "f1")).contents) == ["c1", "c2"]


@pytest.mark.asyncio
class TestDropFeature:
    """Tests for drop_feature."""

    async def test_drop_feature(self, store, make_content):
        reconciler = AssociationReconciler(store=store, executor=FanOutExecutor())
        await make_content("c1", features=["f1", "f2"])

        content = await reconciler.drop_feature("c1", "f1")

        assert content.features == ["f2"]
        assert (await store.get(Content, "c1")).features == ["f2"]

    async def test_drop_from_missing_content(self, store):
        reconciler = AssociationReconciler(store=store, executor=FanOutExecutor())

        assert await reconciler.drop_feature("ghost", "f1") is None
