"""
Shared test fixtures for all test modules.

Every test gets a fresh in-memory document store and blob store, so no
external services are needed.
"""

from collections.abc import AsyncGenerator

import pytest

from contentgraph.core.blob_store.memory import InMemoryBlobStore
from contentgraph.core.document_store.memory_store import InMemoryDocumentStore
from contentgraph.core.fanout import FanOutExecutor
from contentgraph.models.block import BlockFile, ImageBlock, ImageBlockData, OpaqueBlock
from contentgraph.models.content import Content, ContentType
from contentgraph.models.feature import Feature
from contentgraph.models.image import Image, ImageFile
from contentgraph.services.content_graph import ContentGraph
from contentgraph.utils.locks import KeyedLock


class SaveRecorder:
    """Wraps a store's save/remove and records every call."""

    def __init__(self, store):
        self.saves: list[tuple[str, str]] = []
        self.removes: list[tuple[str, str]] = []
        self._save = store.save
        self._remove = store.remove
        store.save = self.save
        store.remove = self.remove

    async def save(self, entity):
        self.saves.append((entity.collection, entity.id))
        await self._save(entity)

    async def remove(self, entity):
        self.removes.append((entity.collection, entity.id))
        await self._remove(entity)

    def saved(self, collection: str) -> list[str]:
        return [doc_id for coll, doc_id in self.saves if coll == collection]

    def reset(self) -> None:
        self.saves.clear()
        self.removes.clear()


def _image_block(image_id: str, caption: str | None = None, url: str | None = None) -> ImageBlock:
    return ImageBlock(
        data=ImageBlockData(id=image_id, file=BlockFile(url=url or f"/uploads/{image_id}.png"), caption=caption)
    )


def _text_block(text: str) -> OpaqueBlock:
    return OpaqueBlock(type="text", data={"text": text})


@pytest.fixture
def image_block():
    """Builder for image blocks referencing an image ID."""
    return _image_block


@pytest.fixture
def text_block():
    return _text_block


@pytest.fixture
async def store() -> AsyncGenerator[InMemoryDocumentStore, None]:
    """Create an initialized in-memory document store."""
    document_store = InMemoryDocumentStore()
    await document_store.initialize()
    yield document_store
    await document_store.close()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def executor() -> FanOutExecutor:
    return FanOutExecutor()


@pytest.fixture
def locks() -> KeyedLock:
    return KeyedLock()


@pytest.fixture
async def graph(store, blob_store, executor, locks) -> AsyncGenerator[ContentGraph, None]:
    """Create a content graph over the in-memory stores."""
    content_graph = ContentGraph(store=store, blob_store=blob_store, executor=executor, locks=locks)
    await content_graph.initialize()
    yield content_graph
    await content_graph.close()


@pytest.fixture
def recorder(store) -> SaveRecorder:
    """Record saves and removes made through the store."""
    return SaveRecorder(store)


@pytest.fixture
def make_feature(store):
    """Factory persisting a feature."""

    async def _make(feature_id: str, contents: list[str] | None = None) -> Feature:
        feature = Feature(id=feature_id, title=feature_id, layer="layer-1", contents=contents or [])
        await store.save(feature)
        return feature

    return _make


@pytest.fixture
def make_image(store, blob_store):
    """Factory persisting an image (and its blob)."""

    async def _make(image_id: str, content: str | None = None, blob: str | None = None) -> Image:
        name = blob if blob is not None else f"{image_id}.png"
        if name:
            blob_store.blobs[name] = b"\x89PNG"
        image = Image(
            id=image_id,
            content=content,
            file=ImageFile(name=name or None, url=f"memory://{name}" if name else None),
        )
        await store.save(image)
        return image

    return _make


@pytest.fixture
def make_content(store):
    """Factory persisting a content without touching related documents."""

    async def _make(
        content_id: str,
        features: list[str] | None = None,
        blocks: list | None = None,
    ) -> Content:
        content = Content(
            id=content_id,
            type=ContentType.POST,
            title=f"Content {content_id}",
            layer="layer-1",
            features=features or [],
            blocks=blocks or [],
        )
        await store.save(content)
        return content

    return _make
