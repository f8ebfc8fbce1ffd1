"""
Tests for ContentGraph - the unified interface.

Tests cover:
1. Creation (contents, features, image uploads)
2. Lookup and listing
3. Reconciliation by content or ID
4. Removal
5. Construction from configuration
"""

import pytest

from contentgraph.config import Config
from contentgraph.core.blob_store import InMemoryBlobStore, LocalBlobStore
from contentgraph.core.document_store import InMemoryDocumentStore, SQLiteDocumentStore
from contentgraph.models import Content, ContentType, Feature, Image, ImageState
from contentgraph.services.content_graph import ContentGraph
from contentgraph.utils.exceptions import NotFoundError, ValidationError


@pytest.fixture
def upload_file(tmp_path):
    path = tmp_path / "sunset.jpg"
    path.write_bytes(b"jpeg-bytes")
    return path


@pytest.mark.asyncio
class TestCreation:
    """Tests for creating documents."""

    async def test_create_content_links_features_and_images(
        self, graph, store, upload_file, image_block, text_block
    ):
        feature = await graph.create_feature(title="Harbour", layer="layer-1")
        image = await graph.upload_image(upload_file, creator="user-1")

        content = await graph.create_content(
            ContentType.POST,
            title="Evening walk",
            layer="layer-1",
            blocks=[text_block("Hello"), image_block(image.id)],
            features=[feature.id],
            creator="user-1",
        )

        assert content.id.startswith("cnt_")
        assert content.features == [feature.id]
        assert (await store.get(Feature, feature.id)).contents == [content.id]
        assert (await store.get(Image, image.id)).content == content.id
        assert (await store.get(Content, content.id)).creator == "user-1"

    async def test_create_content_with_missing_feature(self, graph):
        with pytest.raises(NotFoundError):
            await graph.create_content(ContentType.MARKDOWN, title="T", layer="l", features=["ghost"])

    async def test_upload_image(self, graph, blob_store, upload_file):
        image = await graph.upload_image(upload_file, creator="user-1")

        assert image.id.startswith("img_")
        assert image.content is None
        assert image.state == ImageState.ATTACHED
        assert image.file.name.endswith("_sunset.jpg")
        assert image.file.url == f"memory://{image.file.name}"
        assert blob_store.blobs[image.file.name] == b"jpeg-bytes"

    async def test_upload_image_with_base_url(self, graph, upload_file):
        image = await graph.upload_image(upload_file, base_url="https://cdn.example.com/items/")

        assert image.file.url == f"https://cdn.example.com/items/{image.file.name}"


@pytest.mark.asyncio
class TestLookup:
    """Tests for loading and listing."""

    async def test_load_content(self, graph):
        created = await graph.create_content(ContentType.VIDEO, title="Clip", layer="layer-1")

        loaded = await graph.load_content(created.id)

        assert loaded.title == "Clip"

    async def test_load_missing_content(self, graph):
        with pytest.raises(NotFoundError):
            await graph.load_content("ghost")

    async def test_load_features_skips_missing(self, graph, make_content, make_feature):
        content = await make_content("c1", features=["f1", "ghost"])
        await make_feature("f1", contents=["c1"])

        features = await graph.load_features(content)

        assert [f.id for f in features] == ["f1"]

    async def test_list_contents_newest_first(self, graph):
        created = []
        for title in ["first", "second", "third"]:
            created.append(await graph.create_content(ContentType.POST, title=title, layer="layer-1"))
        await graph.create_content(ContentType.POST, title="elsewhere", layer="layer-2")

        page = await graph.list_contents({"layer": "layer-1"}, page=0, per_page=2)
        rest = await graph.list_contents({"layer": "layer-1"}, page=1, per_page=2)

        assert [c.title for c in page] == ["third", "second"]
        assert [c.title for c in rest] == ["first"]

    async def test_list_contents_invalid_paging(self, graph):
        with pytest.raises(ValidationError):
            await graph.list_contents(page=-1)
        with pytest.raises(ValidationError):
            await graph.list_contents(per_page=0)

    async def test_statistics(self, graph, make_content, make_feature, make_image):
        await make_content("c1")
        await make_feature("f1")
        await make_feature("f2")
        await make_image("img-1")

        assert await graph.get_statistics() == {"contents": 1, "features": 2, "images": 1}


@pytest.mark.asyncio
class TestReconciliation:
    """Tests for reconciliation through the facade."""

    async def test_reconcile_features_by_id(self, graph, store, make_content, make_feature):
        await make_content("c1", features=["f1"])
        await make_feature("f1", contents=["c1"])
        await make_feature("f2")

        content = await graph.reconcile_features("c1", ["f2"])

        assert content.features == ["f2"]
        assert (await store.get(Feature, "f1")).contents == []
        assert (await store.get(Feature, "f2")).contents == ["c1"]

    async def test_reconcile_blocks_by_id(self, graph, store, make_content, make_image, image_block):
        await make_content("c1", blocks=[image_block("img-1")])
        await make_image("img-1", content="c1")
        await make_image("img-2")

        content = await graph.reconcile_blocks("c1", [image_block("img-2")])

        assert content.image_ids() == ["img-2"]
        assert await store.get(Image, "img-1") is None
        assert (await store.get(Image, "img-2")).content == "c1"

    async def test_reconcile_missing_content(self, graph):
        with pytest.raises(NotFoundError):
            await graph.reconcile_features("ghost", [])


@pytest.mark.asyncio
class TestRemoval:
    """Tests for removal through the facade."""

    async def test_remove_content(self, graph, store, upload_file, image_block):
        feature = await graph.create_feature(title="Pier")
        image = await graph.upload_image(upload_file)
        content = await graph.create_content(
            ContentType.IMAGE_GALLERY,
            title="Gallery",
            layer="layer-1",
            blocks=[image_block(image.id)],
            features=[feature.id],
        )

        removed = await graph.remove_content(content.id)

        assert removed.id == content.id
        assert await graph.get_statistics() == {"contents": 0, "features": 1, "images": 0}
        assert (await store.get(Feature, feature.id)).contents == []

    async def test_remove_image(self, graph, store, upload_file, image_block, text_block):
        image = await graph.upload_image(upload_file)
        content = await graph.create_content(
            ContentType.POST,
            title="Post",
            layer="layer-1",
            blocks=[text_block("a"), image_block(image.id)],
        )

        removed = await graph.remove_image(image.id)

        assert removed.state == ImageState.DELETED
        assert (await store.get(Content, content.id)).blocks == [text_block("a")]

    async def test_remove_feature(self, graph, store):
        feature = await graph.create_feature(title="Pier")
        content = await graph.create_content(
            ContentType.POST, title="Post", layer="layer-1", features=[feature.id]
        )

        await graph.remove_feature(feature.id)

        assert (await store.get(Content, content.id)).features == []

    async def test_remove_missing(self, graph):
        with pytest.raises(NotFoundError):
            await graph.remove_content("ghost")
        with pytest.raises(NotFoundError):
            await graph.remove_image("ghost")
        with pytest.raises(NotFoundError):
            await graph.remove_feature("ghost")


class TestFromConfig:
    """Tests for building the graph from configuration."""

    def test_defaults(self):
        graph = ContentGraph.from_config(Config())

        assert isinstance(graph.store, InMemoryDocumentStore)
        assert isinstance(graph.blob_store, LocalBlobStore)
        assert graph.executor.max_concurrency is None
        assert graph.locks.enabled is True

    def test_custom(self, tmp_path):
        config = Config(
            store={"backend": "sqlite", "db_path": str(tmp_path / "graph.db")},
            blob_store={"backend": "memory"},
            fanout={"max_concurrency": 4, "timeout": 2.5, "serialize_item_updates": False},
        )

        graph = ContentGraph.from_config(config)

        assert isinstance(graph.store, SQLiteDocumentStore)
        assert isinstance(graph.blob_store, InMemoryBlobStore)
        assert graph.executor.max_concurrency == 4
        assert graph.executor.timeout == 2.5
        assert graph.locks.enabled is False
